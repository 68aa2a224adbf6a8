import argparse
from pathlib import Path

def parse_main_args(argv=None):
    parser = argparse.ArgumentParser(description="Dialog tree preview player")
    parser.add_argument(
        "--tree",
        type=Path,
        default=Path("assets/trees/example.yaml"),
        help="Path to a dialog tree file (YAML or JSON export)"
    )
    parser.add_argument(
        "--tree-name",
        type=str,
        required=False,
        help="Tree to play when the file is a whole project"
    )
    parser.add_argument(
        "--seed",
        type=int,
        required=False,
        help="Seed for simulated conditions, for reproducible playthroughs"
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the tree and exit"
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Enable developer commands (/vars, /set, /goto)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log engine decisions to stderr"
    )
    return parser.parse_args(argv)
