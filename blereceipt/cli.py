"""Command-line interface."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from blereceipt.config import SCAN_TIMEOUT
from blereceipt.service import BluetoothPrinterService, ConsoleNotifier, Notifier
from blereceipt.transport import BleakTransport, Transport

DEFAULT_FONT_SIZE = 12


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blereceipt",
        description="Print text receipts to an ESC/POS printer over Bluetooth LE",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -N "BlueTooth Printer" -t "Hello" -t "World"   Print two lines
  %(prog)s -N "BlueTooth Printer" -f receipt.txt          Print a text file
  %(prog)s -N "BlueTooth Printer" -f header.txt --header  Print without feed/cut
  %(prog)s -d 00:11:22:33:44:55 -t "Hello"                Use printer by address
  %(prog)s --scan                                         List advertising devices
        """,
    )
    parser.add_argument("-N", "--device-name", help="Printer name as shown in the Bluetooth device list.")
    parser.add_argument("-d", "--device", metavar="ADDR",
                        help="Printer address. Registered as a paired device so no scan is needed.")
    parser.add_argument("-t", "--text", action="append", default=[], help="Line to print (repeatable).")
    parser.add_argument("-f", "--file", help="Text file to print, one receipt line per line.")
    parser.add_argument("--header", action="store_true",
                        help="Print as a header: no paper feed or cut afterwards.")
    parser.add_argument("-z", "--font-size", type=int, default=DEFAULT_FONT_SIZE,
                        help=f"Font point size (default: {DEFAULT_FONT_SIZE}).")
    parser.add_argument("-a", "--align", choices=["left", "center"], default="center",
                        help="Text alignment (default: center).")
    parser.add_argument("-l", "--list-devices", action="store_true", help="List paired devices and exit.")
    parser.add_argument("--scan", action="store_true", help="Scan for advertising devices and exit.")
    parser.add_argument("-s", "--scan-timeout", type=float, default=SCAN_TIMEOUT,
                        help=f"Seconds to scan for the printer (default: {SCAN_TIMEOUT:g}).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def collect_lines(args) -> List[str]:
    lines = list(args.text)
    if args.file:
        with open(args.file, encoding="utf-8") as f:
            lines.extend(line.rstrip("\r\n") for line in f)
    return lines


async def run(args, transport: Optional[Transport] = None, notifier: Optional[Notifier] = None) -> int:
    """Execute the parsed command. Returns the process exit status."""
    if transport is None:
        known = {args.device: args.device_name or args.device} if args.device else None
        transport = BleakTransport(known_devices=known)
    service = BluetoothPrinterService(transport, notifier or ConsoleNotifier(),
                                      scan_timeout=args.scan_timeout)

    if args.list_devices:
        names = await service.get_paired_devices()
        if not names:
            print("No paired devices.")
        for name in names:
            print(f"- {name}")
        return 0

    if args.scan:
        print(f"Scanning for {args.scan_timeout:g}s...")
        names = await service.scan_devices()
        if not names:
            print("No devices found.")
        for name in names:
            print(f"- {name}")
        return 0

    target = args.device_name or args.device
    if not target:
        print("Error: No printer specified. Use -N or -d.")
        return 1

    try:
        lines = collect_lines(args)
    except OSError as e:
        print(f"Error reading '{args.file}': {e}")
        return 1
    if not any(lines):
        print("Error: Nothing to print. Use -t or -f.")
        return 1

    print(f"Connecting to '{target}'...")
    if not await service.connect(target):
        print("Failed to connect.")
        return 1

    try:
        success = await service.print_formatted_text(
            lines, font_size=args.font_size, center_align=args.align == "center",
            is_body=not args.header)
    finally:
        await service.disconnect()

    print("Printed successfully." if success else "Print failed.")
    return 0 if success else 1


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
