import argparse
import logging
import os
import sys
import textwrap
from functools import wraps
from pathlib import Path

from . import Case, Processor, CaseIndexNotFound, SaveStatus
from .index.path import find_case_for_path


def needs_case(func):
    """Decorator for commands that need the case to be loaded.

    The decorated function will receive (case, args).
    The wrapper function takes (load_case_fn, args), creates a Processor if the command
    asks for one, and calls load_case_fn.
    """
    @wraps(func)
    def wrapper(load_case_fn, args):
        if getattr(args, 'processor', False):
            with Processor() as processor:
                with load_case_fn(processor) as case:
                    return func(case, args)
        with load_case_fn(None) as case:
            return func(case, args)
    return wrapper


def no_case(func):
    """Decorator for commands that don't need the case.

    The decorated function will receive (args).
    """
    @wraps(func)
    def wrapper(load_case_fn, args):
        return func(args)
    return wrapper


def hitsave_main():
    parser = argparse.ArgumentParser(
        prog='hitsave',
        description='Index a read-only source tree, tag interesting files and directories, and save the tagged '
                    'items to an output folder with a report per interesting file set.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              hitsave ingest /mnt/image
              hitsave tag --set Docs --description "Office documents" /home/alice/doc.txt
              hitsave save --output /tmp/saved
            ''').strip()
    )
    parser.add_argument(
        '--case',
        metavar='PATH',
        help='Path to the case directory. If not provided, uses HITSAVE_CASE environment variable or searches '
             'from current directory upward.')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file for operation logging. If not provided, uses logging.path from case settings or '
             'logs to standard error.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO when --log-file is provided, '
             'WARNING otherwise.')
    subparsers = parser.add_subparsers(
        dest='command',
        required=True,
        title='Commands',
        description='Available commands for case operations',
        help='Use "hitsave COMMAND --help" for command-specific help'
    )

    parser_ingest = subparsers.add_parser(
        'ingest',
        help='Index a source tree',
        description='Walks the source tree and records every file and directory with a numeric identifier. '
                    'Existing items and tags are discarded.')
    parser_ingest.add_argument(
        'source',
        metavar='SOURCE',
        help='Root directory of the source tree')
    parser_ingest.set_defaults(method=_ingest, create=True)

    parser_digest = subparsers.add_parser(
        'digest',
        help='Compute MD5 digests of indexed files',
        description='Computes MD5 digests of indexed files. Saved files are reported with their digest when one '
                    'has been computed.')
    parser_digest.add_argument(
        '--recompute',
        action='store_true',
        help='Recompute digests of files that already have one')
    parser_digest.set_defaults(method=_digest, create=False, processor=True)

    parser_tag = subparsers.add_parser(
        'tag',
        help='Mark items as hits of an interesting file set',
        description='Records an interesting file hit for each logical path. Paths are relative to the root of the '
                    'ingested source tree.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              hitsave tag --set Docs /home/alice/doc.txt /home/bob/doc.txt
              hitsave tag --set Evidence --description "Seized folders" /home/alice/evidence
            ''').strip())
    parser_tag.add_argument(
        'paths',
        nargs='+',
        metavar='PATH',
        help='Logical paths of the files or directories')
    parser_tag.add_argument(
        '--set',
        required=True,
        dest='set_name',
        metavar='NAME',
        help='Name of the interesting file set')
    parser_tag.add_argument(
        '--description',
        default='',
        metavar='TEXT',
        help='Description of the interesting file set (the first description recorded for a set is used)')
    parser_tag.set_defaults(method=_tag, create=False)

    parser_save = subparsers.add_parser(
        'save',
        help='Save the hits of every interesting file set',
        description='Copies the files and directories of every interesting file set to <OUTPUT>/<set name>/ and '
                    'writes <OUTPUT>/<set name>/<set name>.xml. Exits with status 1 if any hit could not be saved.')
    parser_save.add_argument(
        '--output',
        metavar='DIR',
        help='Output folder (default: <output.directory setting or CASE/output>/InterestingFiles)')
    parser_save.set_defaults(method=_save, create=False)

    parser_show_report = subparsers.add_parser(
        'show-report',
        help='Print the entries of a saved items report',
        description='Prints one line per entry of a report written by the save command.')
    parser_show_report.add_argument(
        'report',
        metavar='REPORT',
        help='Path to a <set name>.xml report')
    parser_show_report.set_defaults(method=_show_report, create=False)

    parser_inspect = subparsers.add_parser(
        'inspect',
        help='Inspect and display case index records',
        description='Displays the items, relations and hits stored in the case index.')
    parser_inspect.set_defaults(method=_inspect, create=False)

    args = parser.parse_args()

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=getattr(logging, args.log_level or 'INFO'),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        logging.basicConfig(
            level=getattr(logging, args.log_level or 'WARNING'),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    case_path = args.case
    if case_path is None:
        case_path = os.environ.get('HITSAVE_CASE')

    def load_case(processor):
        if case_path is None:
            found = find_case_for_path(Path.cwd())
            if found is not None:
                case = Case(processor, found)
            elif args.create:
                case = Case(processor, Path.cwd(), create=True)
            else:
                raise CaseIndexNotFound(f"No case found at or above {Path.cwd()}")
        else:
            case = Case(processor, case_path, create=args.create)

        if not args.log_file:
            case.configure_logging_from_settings()
        return case

    sys.exit(args.method(load_case, args) or 0)


@needs_case
def _ingest(case: Case, args):
    count = case.ingest(args.source)
    print(f"Indexed {count} items")


@needs_case
def _digest(case: Case, args):
    count = case.compute_digests(args.recompute)
    print(f"Computed {count} digests")


@needs_case
def _tag(case: Case, args):
    try:
        artifact_ids = case.tag(args.set_name, args.description, args.paths)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Recorded {len(artifact_ids)} hits for {args.set_name}")


@needs_case
def _save(case: Case, args):
    result = case.save(args.output)

    for outcome in result.file_sets:
        print(f"{outcome.name}: {outcome.saved_items} saved, {outcome.failed_hits} failed "
              f"({outcome.status.upper()})")
    if result.skipped_artifacts:
        print(f"{len(result.skipped_artifacts)} hits without a set name were skipped")
    print(f"Status: {result.status.upper()}")

    return 0 if result.status == SaveStatus.OK else 1


@no_case
def _show_report(args):
    from .report.saved_items import SavedItemsReport, SavedFile

    report = SavedItemsReport.read(Path(args.report))
    print(f"{report.set_name}: {report.description}")
    for entry in report.items:
        if isinstance(entry, SavedFile):
            print(f"file {entry.path} <- {entry.original_path} md5:{entry.md5 or '-'}")
        else:
            print(f"directory {entry.path} <- {entry.original_path}")


@needs_case
def _inspect(case: Case, args):
    for record in case.inspect():
        print(record)


if __name__ == '__main__':
    hitsave_main()
