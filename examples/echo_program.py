#!/usr/bin/env python3
"""
Stand-in external program for local runs and benchmarks.

Prints its two parameters, a few repeated progress lines, and exits with
the status given by the JARCOUNT_EXAMPLE_EXIT environment variable (0 by
default).
"""

import os
import sys


def main(argv):
    source, target = (argv + ["-", "-"])[:2]
    print(f"converting {source} -> {target}")
    for _ in range(3):
        print("working")
    print("done")
    return int(os.environ.get("JARCOUNT_EXAMPLE_EXIT", "0"))


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
