"""Fake uploader: copy stdin into OUT.

usage: stdin_echo.py OUT
"""

import sys

with open(sys.argv[1], "wb") as f:
    f.write(sys.stdin.buffer.read())
