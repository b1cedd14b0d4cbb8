"""Entry point for running repo-search as a module (python -m repo_search)."""

import sys


def main():
    """Main entry point for the repo-search CLI."""
    from repo_search.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
