"""
ply_tool.py - Inspect, convert and plot PLY files from the command line

Usage:
    python -m plyio info bunny.ply
    python -m plyio info bunny.ply --records
    python -m plyio convert bunny.ply bunny_bin.ply --encoding binary_little_endian
    python -m plyio convert bunny.ply bunny_dos.ply --crlf
    python -m plyio plot bunny.ply -x x -y z -o bunny.png
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from .ply_archive import dump, load, load_header
from .ply_errors import PlyError
from .ply_grammar import format_property_type
from .ply_numpy import element_arrays
from .ply_types import Encoding, ListOf


def format_record(record, element_def):
    """One line summary of a DefaultElement record."""
    fields = []
    for name in element_def.properties:
        value = record.get(name)
        fields.append(f"{name}={value.data if value is not None else '?'}")
    return " ".join(fields)


def print_info(filename, records=False):
    """Print the header of a file, and optionally every record."""
    if records:
        ply = load(filename)
        header = ply.header
    else:
        header = load_header(filename)

    print(f"{filename}:")
    print(f"  format: {header.encoding} {header.version}")
    for comment in header.comments:
        print(f"  comment: {comment}")
    for obj_info in header.obj_infos:
        print(f"  obj_info: {obj_info}")
    for element in header.elements.values():
        print(f"  element {element.name}: {element.count} records")
        for prop in element.properties.values():
            print(f"    {format_property_type(prop.data_type)} {prop.name}")
        if records:
            for i, record in enumerate(ply.payload[element.name]):
                print(f"    [{i}] {format_record(record, element)}")


def convert(src, dest, encoding=None, new_line="\n"):
    """Read `src` and write it to `dest`, optionally changing the encoding."""
    ply = load(src)
    written = dump(ply, dest, encoding=encoding, new_line=new_line)
    print(f"Wrote {dest} ({ply.header.encoding}, {written} bytes)")


def plot_element(filename, element=None, x_field=None, y_field=None, output=None, figwidth=4.0):
    """Scatter plot two scalar properties of an element.

    Args:
        filename: PLY file to read
        element: Element name (None = first element)
        x_field: Property for the x-axis (None = auto-detect x, or the first property)
        y_field: Property for the y-axis (None = auto-detect y, or the next property)
        output: Output filename for plot (None = show interactively)
        figwidth: Figure width in inches (default 4.0)
    """
    import matplotlib.pyplot as plt

    ply = load(filename)
    if not ply.header.elements:
        print("No elements to plot")
        return
    if element is None:
        element = next(iter(ply.header.elements))
    if element not in ply.header.elements:
        print(f"Error: element '{element}' not found")
        sys.exit(1)

    element_def = ply.header.elements[element]
    available_fields = [
        name for name, prop in element_def.properties.items()
        if not isinstance(prop.data_type, ListOf)
    ]

    # Auto-detect axes if not specified
    if x_field is None:
        x_field = "x" if "x" in available_fields else next(iter(available_fields), None)
    if y_field is None:
        candidates = [f for f in available_fields if f != x_field]
        y_field = "y" if "y" in candidates else next(iter(candidates), None)

    for f in (x_field, y_field):
        if f not in available_fields:
            print(f"Error: scalar property '{f}' not found in element '{element}'")
            sys.exit(1)

    arrays = element_arrays(ply, element)
    x_data = np.asarray(arrays[x_field], dtype=float)
    y_data = np.asarray(arrays[y_field], dtype=float)

    fig, ax = plt.subplots(1, 1, figsize=(figwidth, figwidth * 0.75))
    ax.plot(x_data, y_data, ".", markersize=2)
    ax.set_xlabel(x_field)
    ax.set_ylabel(y_field)
    ax.grid(True, alpha=0.3)
    ax.set_aspect("equal", adjustable="datalim")
    fig.suptitle(f"{Path(filename).name}: {element}")

    plt.tight_layout()

    if output:
        plt.savefig(output, dpi=150)
        print(f"Saved plot to {output}")
    else:
        plt.show()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Inspect, convert and plot PLY files",
        prog="python -m plyio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s info mesh.ply                                  # Show the header
  %(prog)s info mesh.ply --records                        # ... and every record
  %(prog)s convert mesh.ply out.ply -e binary_big_endian  # Change encoding
  %(prog)s plot cloud.ply -x x -y z -o cloud.png          # Save a scatter plot
""",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log reader and writer activity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    info_parser = subparsers.add_parser("info", help="Print the header of a PLY file")
    info_parser.add_argument("filename", help="PLY file")
    info_parser.add_argument(
        "--records",
        action="store_true",
        help="Also print every record",
    )

    convert_parser = subparsers.add_parser("convert", help="Rewrite a PLY file")
    convert_parser.add_argument("src", help="Input PLY file")
    convert_parser.add_argument("dest", help="Output PLY file")
    convert_parser.add_argument(
        "-e",
        "--encoding",
        choices=[e.value for e in Encoding],
        help="Output encoding (default: same as input)",
    )
    convert_parser.add_argument(
        "--crlf",
        action="store_true",
        help="Terminate lines with \\r\\n instead of \\n",
    )

    plot_parser = subparsers.add_parser("plot", help="Scatter plot two properties of an element")
    plot_parser.add_argument("filename", help="PLY file")
    plot_parser.add_argument(
        "-e",
        "--element",
        help="Element to plot (default: first element)",
    )
    plot_parser.add_argument("-x", "--x-field", help="Property for the x-axis (default: x)")
    plot_parser.add_argument("-y", "--y-field", help="Property for the y-axis (default: y)")
    plot_parser.add_argument(
        "-o",
        "--output",
        help="Output filename for plot (default: show interactively)",
    )
    plot_parser.add_argument(
        "-w",
        "--width",
        type=float,
        default=4.0,
        help="Figure width in inches (default: 4.0)",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    # Check file exists
    filename = args.src if args.command == "convert" else args.filename
    if not Path(filename).exists():
        print(f"Error: file not found: {filename}")
        sys.exit(1)

    try:
        if args.command == "info":
            print_info(filename, records=args.records)
        elif args.command == "convert":
            convert(
                args.src,
                args.dest,
                encoding=args.encoding,
                new_line="\r\n" if args.crlf else "\n",
            )
        elif args.command == "plot":
            plot_element(
                filename,
                element=args.element,
                x_field=args.x_field,
                y_field=args.y_field,
                output=args.output,
                figwidth=args.width,
            )
    except PlyError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
