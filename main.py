"""firebase-at - command-line interface.

Relays single values between the terminal and a Firebase Realtime Database
through an AT-command WiFi modem on a serial port.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from firebase_at.client import FirebaseClient
from firebase_at.config import ConfigLoader, Config, LogLevel
from firebase_at.core import (
    ATExecutor,
    ConfigurationError,
    SerialHandler,
    SerialPortError,
    WifiLinkMonitor,
)
from firebase_at.logging import CommunicationLogger


def discover_ports() -> int:
    """Discover and display available serial ports."""
    ports = SerialHandler.discover_ports()

    if not ports:
        print("No serial ports found.")
        return 0

    print(f"Found {len(ports)} port(s):")
    for port in ports:
        print(f"  {port.device}")
        print(f"    Description: {port.description}")
        print(f"    Hardware ID: {port.hwid}")
    return 0


def show_config(loader: ConfigLoader) -> int:
    """Print every configuration value with its source."""
    for section, values in loader.show_config(mask_sensitive=True).items():
        print(f"[{section}]")
        for key, meta in values.items():
            print(f"  {key} = {meta['value']!r}  ({meta['source']})")
    return 0


def run_operation(args: argparse.Namespace, client: FirebaseClient) -> int:
    """Dispatch the requested client operation and print its result.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if args.read:
        value = client.read_value(args.read)
        print(value)
        return 0 if value else 1

    if args.read_bool:
        print("true" if client.read_boolean(args.read_bool) else "false")
        return 0

    if args.read_dimmer:
        print(client.read_dimmer(args.read_dimmer))
        return 0

    if args.read_percentage:
        print(client.read_percentage(args.read_percentage))
        return 0

    if args.write_number:
        name, raw = args.write_number
        try:
            number = float(raw)
        except ValueError:
            print(f"Error: '{raw}' is not a number", file=sys.stderr)
            return 1
        return 0 if client.write_number(name, number) else 1

    if args.write_string:
        name, text = args.write_string
        return 0 if client.write_string(name, text) else 1

    if args.write_bool:
        name, raw = args.write_bool
        return 0 if client.write_boolean(name, raw.lower() in ("1", "true", "on", "yes")) else 1

    if args.send_json:
        try:
            json.loads(args.send_json)
        except ValueError as e:
            print(f"Error: invalid JSON: {e}", file=sys.stderr)
            return 1
        return 0 if client.send_json(args.send_json) else 1

    if args.send_sensors:
        temperature, humidity, light = args.send_sensors
        return 0 if client.send_multi_sensor(temperature, humidity, light) else 1

    if args.delete:
        return 0 if client.delete(args.delete) else 1

    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="firebase-at - Firebase Realtime Database relay over an AT WiFi modem",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --discover-ports
  %(prog)s --port /dev/ttyUSB0 --read relay
  %(prog)s --port COM3 --write-number counter 42
  %(prog)s --port COM3 --send-sensors 25 60 500
  %(prog)s --show-config --config ./config.yaml
        """
    )

    parser.add_argument('--config', type=str, metavar='PATH', help='Path to config.yaml')
    parser.add_argument('--port', type=str, help='Serial port (overrides modem.port)')
    parser.add_argument('--baud', type=int, help='Baud rate (overrides modem.baud_rate)')
    parser.add_argument('--verbose', action='store_true', help='Log every AT exchange')
    parser.add_argument('--log-level', type=str, choices=[level.value for level in LogLevel],
                        help='Log level (overrides logging.level)')

    parser.add_argument('--discover-ports', action='store_true',
                        help='List available serial ports')
    parser.add_argument('--show-config', action='store_true',
                        help='Show configuration with sources')
    parser.add_argument('--validate-config', action='store_true',
                        help='Validate configuration and exit')
    parser.add_argument('--generate-config', type=str, metavar='PATH',
                        help='Write a default config.yaml')

    operations = parser.add_mutually_exclusive_group()
    operations.add_argument('--read', metavar='NAME', help='Read a value')
    operations.add_argument('--read-bool', metavar='NAME', help='Read a value as a boolean')
    operations.add_argument('--read-dimmer', metavar='NAME', help='Read a 0-1024 dimmer value')
    operations.add_argument('--read-percentage', metavar='NAME',
                            help='Read a dimmer value as 0-100')
    operations.add_argument('--write-number', nargs=2, metavar=('NAME', 'VALUE'))
    operations.add_argument('--write-string', nargs=2, metavar=('NAME', 'VALUE'))
    operations.add_argument('--write-bool', nargs=2, metavar=('NAME', 'VALUE'))
    operations.add_argument('--send-json', metavar='JSON', help='Write raw JSON at the base path')
    operations.add_argument('--send-sensors', nargs=3, type=float,
                            metavar=('TEMP', 'HUMID', 'LIGHT'))
    operations.add_argument('--delete', metavar='NAME', help='Delete a device node')

    return parser


def has_operation(args: argparse.Namespace) -> bool:
    return any([
        args.read, args.read_bool, args.read_dimmer, args.read_percentage,
        args.write_number, args.write_string, args.write_bool,
        args.send_json, args.send_sensors, args.delete,
    ])


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.discover_ports:
        return discover_ports()

    if args.generate_config:
        try:
            path = ConfigLoader.write_default_config(Path(args.generate_config))
        except FileExistsError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Wrote {path}")
        return 0

    loader = ConfigLoader(Path(args.config) if args.config else None)
    try:
        config: Config = loader.load()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.validate_config:
        print("Configuration is valid")
        return 0

    if args.show_config:
        return show_config(loader)

    if not has_operation(args):
        parser.print_help()
        return 0

    port = args.port or config.modem.port
    if not port:
        print("Error: no serial port (use --port or modem.port)", file=sys.stderr)
        return 1

    log_level = args.log_level or ("DEBUG" if args.verbose else config.logging.level.value)
    logger = CommunicationLogger(
        log_level=log_level,
        enable_console=config.logging.console_output or args.verbose
    )

    handler = SerialHandler(
        port,
        baud_rate=args.baud or config.modem.baud_rate,
        write_timeout=config.modem.write_timeout,
        logger=logger
    )
    try:
        handler.open()
        handler.discard_input()
    except SerialPortError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        executor = ATExecutor(
            handler,
            poll_interval=config.modem.poll_interval_ms / 1000.0,
            logger=logger,
            port_name=port
        )
        client = FirebaseClient(
            config.firebase,
            executor,
            is_wifi_connected=WifiLinkMonitor(
                executor, timeout_ms=config.timing.link_check_timeout_ms, logger=logger
            ),
            timing=config.timing,
            logger=logger
        )
        return run_operation(args, client)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    finally:
        handler.close()


if __name__ == '__main__':
    sys.exit(main())
