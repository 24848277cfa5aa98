"""Nox sessions for firebase-at: tests, lint, formatting, offline example."""

import nox

nox.options.sessions = ["lint", "tests"]
nox.options.reuse_existing_virtualenvs = True

SOURCES = ["firebase_at", "tests", "examples", "main.py", "noxfile.py"]

# Everything below the client: serial line, AT framing, reply parsing.
WIRE_TESTS = [
    "tests/unit/test_serial_handler.py",
    "tests/unit/test_response_collector.py",
    "tests/unit/test_at_executor.py",
    "tests/unit/test_request_builder.py",
    "tests/unit/test_modem_framing.py",
    "tests/unit/test_value_extractor.py",
]


def install_dev(session):
    session.install("-e", ".[dev]")


@nox.session(python=["3.8", "3.9", "3.10", "3.11", "3.12"])
def tests(session):
    """Run the whole suite on every supported interpreter."""
    install_dev(session)
    session.run("pytest", *session.posargs)


@nox.session(python="3.10")
def coverage(session):
    install_dev(session)
    session.run("pytest", "--cov=firebase_at", "--cov=main",
                "--cov-report=term-missing", *session.posargs)


@nox.session(python="3.10")
def lint(session):
    """flake8 over all sources, mypy over the package."""
    install_dev(session)
    session.run("flake8", "--max-line-length=110", *SOURCES)
    session.run("mypy", "firebase_at", "main.py")


@nox.session(python="3.10", name="format")
def format_sources(session):
    session.install("black")
    session.run("black", "--line-length=110", *SOURCES)


@nox.session(python="3.10")
def unit(session):
    install_dev(session)
    session.run("pytest", "tests/unit", *session.posargs)


@nox.session(python="3.10")
def integration(session):
    """Client and CLI against the scripted modem."""
    install_dev(session)
    session.run("pytest", "tests/integration", *session.posargs)


@nox.session(python="3.10")
def wire(session):
    """Transport and protocol tests only; no client involved."""
    install_dev(session)
    session.run("pytest", "-v", *WIRE_TESTS, *session.posargs)


@nox.session(python="3.10")
def example(session):
    """Run the relay example in offline mode."""
    install_dev(session)
    session.run("python", "examples/relay_example.py")


@nox.session(python=False)
def clean(session):
    """Remove build output and tool caches."""
    import shutil
    from pathlib import Path

    for pattern in ("build", "dist", "*.egg-info", "__pycache__", ".pytest_cache",
                    ".mypy_cache", ".coverage", "coverage.xml", ".nox"):
        for path in Path(".").rglob(pattern):
            if path.is_dir():
                shutil.rmtree(path, ignore_errors=True)
            else:
                path.unlink()
            session.log(f"Removed {path}")
