"""Module entry point for running concept_hierarchy as a package.

Allows: python -m concept_hierarchy <command>
"""

from concept_hierarchy.cli import main
import sys

if __name__ == '__main__':
    sys.exit(main())
