import argparse
import asyncio
import json
import logging
import os
import sys

from . import clipboard


def setup_logging(debug=False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Save the image on the system clipboard to a file')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    parser.add_argument('--version', action='store_true', help='show version and exit')
    parser.add_argument('--dir', metavar='DIR', help='directory to save clipboard images in (default: system temp dir)')
    parser.add_argument('--timeout', type=float, metavar='SECONDS',
                        help='timeout for each clipboard tool invocation (default: 10)')
    subparsers = parser.add_subparsers(dest='mode', help='operating mode')

    subparsers.add_parser('check', help='report whether the clipboard holds an image')

    save_parser = subparsers.add_parser('save', help='save the clipboard image and print its path')
    save_parser.add_argument('--json', action='store_true', help='print the result as JSON')

    args = parser.parse_args(argv)
    if args.version:
        from . import __version__
        print(f"clipgrab version {__version__}")
        sys.exit(0)

    if not args.mode:
        parser.print_help()
        sys.exit(1)
    return args


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.dir:
        os.environ['CLIPGRAB_DIR'] = os.path.abspath(args.dir)
    if args.timeout:
        os.environ['CLIPGRAB_TIMEOUT'] = str(args.timeout)

    if args.mode == 'check':
        present = asyncio.run(clipboard.has_clipboard_image())
        print("yes" if present else "no")
        return 0 if present else 1

    result = asyncio.run(clipboard.save_clipboard_image())
    if args.json:
        print(json.dumps(result.to_dict()))
    elif result.success:
        print(result.file_path)
    else:
        print(f"Error: {result.error}", file=sys.stderr)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
