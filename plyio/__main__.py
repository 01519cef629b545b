"""Command line tool for PLY files.

Usage: python -m plyio {info,convert,plot} ...
"""

from .ply_tool import main

if __name__ == "__main__":
    main()
