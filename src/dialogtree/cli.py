import logging
import sys
from importlib.metadata import version
from .app import CommandResult, create_app
from .args import parse_main_args
from .loader import TreeLoadError, load_tree
from .validation import validate_tree

def main() -> None:

    # Parse arguments
    args = parse_main_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.validate:
        sys.exit(validate(args))

    # Load tree and create preview
    try:
        app = create_app(args)
    except TreeLoadError as exc:
        print(exc)
        sys.exit(1)

    print()
    print("**************************************************")
    print(app.tree.name)
    if app.tree.description:
        print(app.tree.description)
    print(f"dialogtree v{version('dialogtree')} preview")
    if args.seed is not None:
        print(f"  Seed: {args.seed}")
    if app.dev_mode:
        print("Developer mode enabled.")
    print("Enter /HELP for commands.")
    print("**************************************************")

    print(app.get_intro().message)

    # Main loop
    while True:
        try:
            player_cmd_str = input("> ").strip()
        except EOFError:
            break
        if player_cmd_str.lower() in { "quit", "exit" }:
            break

        result: CommandResult = app.handle_raw_command(player_cmd_str)
        print(result.message)

def validate(args) -> int:
    try:
        tree_file = load_tree(args.tree, args.tree_name)
    except TreeLoadError as exc:
        print(exc)
        return 1

    issues = [*tree_file.issues, *validate_tree(tree_file.tree)]
    if not issues:
        print(f"'{tree_file.tree.name}': no issues found.")
        return 0

    issue_lines = "\n".join([f"- {issue}" for issue in issues])
    print(f"TREE VALIDATION FAILED\nFile: {args.tree}\n{issue_lines}")
    return 1

if __name__ == "__main__":
    main()
