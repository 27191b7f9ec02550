import argparse
import sys
from pathlib import Path
from crate2xcode.build import write_projects
from crate2xcode.packages import eligible_packages, load_metadata, read_metadata_file
from crate2xcode.targets import classify_targets

NO_TARGETS_WARNING = 'No libraries with crate-type "staticlib" or "cdylib"'


def _load_packages(args):
    """Packages with at least one bin, cdylib or staticlib target."""
    if args.metadata_json is not None:
        packages = read_metadata_file(args.metadata_json)
    else:
        packages = load_metadata(args.manifest_path)
    return eligible_packages(packages)


def cmd_generate(args):
    """Generate an Xcode project for every eligible package."""
    try:
        packages = _load_packages(args)

        if not packages:
            print(NO_TARGETS_WARNING, file=sys.stderr)
            return

        write_projects(packages, output_dir=args.output_dir, custom_name=args.project_name)

    except (RuntimeError, FileNotFoundError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(2)


def cmd_list(args):
    """List the Xcode targets that would be generated."""
    try:
        packages = _load_packages(args)

        if not packages:
            print(NO_TARGETS_WARNING, file=sys.stderr)
            return

        for package in packages:
            targets = classify_targets(package.targets, package.version.major)
            print(f"{package} ({len(targets)} target(s)):")
            for target in targets:
                print(f"  {target.kind:10} {target.xcode_file_name:30} {target.product_type}")

    except (RuntimeError, FileNotFoundError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(2)


def _add_metadata_args(parser):
    parser.add_argument('--manifest-path', type=Path, default=None,
                        help='Cargo.toml of the package or workspace (default: search from current directory)')
    parser.add_argument('--metadata-json', type=Path, default=None,
                        help='Read saved `cargo metadata --format-version 1` output instead of running cargo')


def main():
    parser = argparse.ArgumentParser(
        prog='crate2xcode',
        description='Generate Xcode projects that build Rust crates with cargo'
    )
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Generate command
    parser_generate = subparsers.add_parser('generate', help='Write <name>.xcodeproj for each package')
    _add_metadata_args(parser_generate)
    parser_generate.add_argument('--output-dir', type=Path, default=None,
                                 help='Directory for the .xcodeproj (default: next to Cargo.toml)')
    parser_generate.add_argument('--project-name', default=None,
                                 help='Project name to use instead of the package name')
    parser_generate.set_defaults(func=cmd_generate)

    # List command
    parser_list = subparsers.add_parser('list', help='List the Xcode targets of each package')
    _add_metadata_args(parser_list)
    parser_list.set_defaults(func=cmd_list)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)
