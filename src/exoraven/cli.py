"""
CLI entry point for exoraven.

Usage:
    exoraven check <path>...                 Report diagnostics for files/directories
    exoraven parse <file>                    Show the story/choice tree
    exoraven outline <file>                  Show document symbols
    exoraven folds <file>                    Show folding ranges

Editor queries (LINE and COL are 1-based):
    exoraven hover <file> LINE COL           Hover text at a position
    exoraven complete <file> LINE COL        Completions at a position
    exoraven definition <file> LINE COL      Where a jump target is defined

    exoraven config [--write PATH]           Show or write configuration
"""

import argparse
import json
import logging
import sys
from collections import defaultdict
from pathlib import Path

from exoraven import __version__
from exoraven.analysis import AnalysisResult, analyze_file
from exoraven.config import get_config, write_default_config
from exoraven.errors import AnalysisError
from exoraven.parser.diagnostic import Severity

logger = logging.getLogger(__name__)


SEVERITY_ORDER = [Severity.ERROR, Severity.WARNING, Severity.INFO, Severity.HINT]


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _analyze(args) -> AnalysisResult:
    return analyze_file(Path(args.file), get_config())


def _position(args):
    """Zero-based (line, character) from 1-based arguments."""
    return max(args.line - 1, 0), max(args.col - 1, 0)


def cmd_check(args):
    """Report diagnostics for files and directories."""
    from .workspace import analyze_paths

    config = get_config()
    min_level = SEVERITY_ORDER.index(Severity(args.severity))
    reports = analyze_paths([Path(p) for p in args.paths], config, args.jobs)

    failed = False
    counts = defaultdict(int)
    output = []

    for report in reports:
        if not report.ok:
            print(f"Error: {report.error}", file=sys.stderr)
            failed = True
            continue

        shown = [d for d in report.result.diagnostics
                 if SEVERITY_ORDER.index(d.severity) <= min_level]
        for d in report.result.diagnostics:
            counts[d.severity] += 1
        if report.result.has_errors:
            failed = True

        if args.json:
            output.append({"file": str(report.path), "diagnostics": [d.to_dict() for d in shown]})
        else:
            for d in sorted(shown, key=lambda d: (d.range.start.line, d.range.start.character)):
                print(f"{report.path}:{d}")

    if args.json:
        _print_json(output)
    else:
        total = sum(counts.values())
        print(f"\nSummary: {len(reports)} files, {total} problems")
        for sev in Severity:
            if counts[sev]:
                print(f"  {sev.value}: {counts[sev]}")

    return 1 if failed else 0


def cmd_parse(args):
    """Show the story/choice tree of a file."""
    result = _analyze(args)
    document = result.document

    if args.json:
        _print_json(document.to_dict())
        return 0

    print(f"Parsed: {args.file}")
    if document.disabled:
        print("  (disabled)")
    print(f"Stories: {len(document.stories)}")
    for story in document.stories:
        print(f"  === {story.id}  (lines {story.range.start.line + 1}-{story.range.end.line + 1})")
        for choice in story.all_choices():
            label = f"= {choice.ref.id}" if choice.ref else choice.text
            jumps = ", ".join(j.target for j in choice.jumps)
            suffix = f"  -> {jumps}" if jumps else ""
            print(f"    {'  ' * (choice.depth - 1)}{'*' * choice.depth} {label}{suffix}")
    return 0


def cmd_outline(args):
    """Show document symbols."""
    from .tools.outline import document_symbols

    symbols = document_symbols(_analyze(args).document)
    if args.json:
        _print_json([s.to_dict() for s in symbols])
        return 0

    def show(symbol, indent):
        print(f"{'  ' * indent}{symbol.name}  [{symbol.range.start.line + 1}]")
        for child in symbol.children:
            show(child, indent + 1)

    for symbol in symbols:
        show(symbol, 0)
    return 0


def cmd_folds(args):
    """Show folding ranges."""
    from .tools.folding import folding_ranges

    result = _analyze(args)
    ranges = folding_ranges(result.document, result.bracket_pairs)
    if args.json:
        _print_json([r.to_dict() for r in ranges])
        return 0

    for r in ranges:
        print(f"{r.start_line + 1}-{r.end_line + 1} {r.kind.value}")
    return 0


def cmd_hover(args):
    """Show hover text at a position."""
    from .tools.hover import hover_at

    line, character = _position(args)
    hover = hover_at(_analyze(args).document, line, character)
    if args.json:
        _print_json(hover.to_dict() if hover else None)
    elif hover:
        print(hover.contents)
    return 0


def cmd_complete(args):
    """Show completions at a position."""
    from .tools.completion import completions_at

    line, character = _position(args)
    items = completions_at(_analyze(args).document, line, character)
    if args.json:
        _print_json([item.to_dict() for item in items])
        return 0

    for item in items:
        print(f"{item.label:<12} {item.detail}")
    return 0


def cmd_definition(args):
    """Show where a jump target is defined."""
    from .tools.definition import definition_at

    line, character = _position(args)
    target = definition_at(_analyze(args).document, line, character)
    if args.json:
        _print_json(target.to_dict() if target else None)
    elif target:
        print(f"{args.file}:{target.start.line + 1}:{target.start.character + 1}")
    else:
        print("No definition found", file=sys.stderr)
        return 1
    return 0


def cmd_config(args):
    """Show the effective configuration, or write a default file."""
    if args.write:
        path = write_default_config(Path(args.write))
        print(f"Wrote default config: {path}")
        return 0

    _print_json(get_config().to_dict())
    return 0


def _add_position(p):
    p.add_argument('file', help='Script file')
    p.add_argument('line', type=int, help='Line (1-based)')
    p.add_argument('col', type=int, help='Column (1-based)')
    p.add_argument('--json', action='store_true', help='Output as JSON')


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Exoscript static analyzer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    exoraven check stories/
    exoraven parse stories/cal_intro.exo --json
    exoraven hover stories/cal_intro.exo 12 5
"""
    )
    parser.add_argument('--version', action='version', version=f'exoraven {__version__}')
    parser.add_argument('--config', help='Configuration file (YAML)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # check
    check_p = subparsers.add_parser('check', help='Report diagnostics')
    check_p.add_argument('paths', nargs='+', help='Files or directories')
    check_p.add_argument('--severity', '-s', choices=[s.value for s in SEVERITY_ORDER],
                         default='hint', help='Minimum severity to report')
    check_p.add_argument('--jobs', '-j', type=int, help='Worker threads')
    check_p.add_argument('--json', action='store_true', help='Output as JSON')
    check_p.set_defaults(func=cmd_check)

    # parse
    parse_p = subparsers.add_parser('parse', help='Show the story tree')
    parse_p.add_argument('file', help='File to parse')
    parse_p.add_argument('--json', action='store_true', help='Output as JSON')
    parse_p.set_defaults(func=cmd_parse)

    # outline
    outline_p = subparsers.add_parser('outline', help='Show document symbols')
    outline_p.add_argument('file', help='Script file')
    outline_p.add_argument('--json', action='store_true', help='Output as JSON')
    outline_p.set_defaults(func=cmd_outline)

    # folds
    folds_p = subparsers.add_parser('folds', help='Show folding ranges')
    folds_p.add_argument('file', help='Script file')
    folds_p.add_argument('--json', action='store_true', help='Output as JSON')
    folds_p.set_defaults(func=cmd_folds)

    # hover / complete / definition
    hover_p = subparsers.add_parser('hover', help='Hover text at a position')
    _add_position(hover_p)
    hover_p.set_defaults(func=cmd_hover)

    complete_p = subparsers.add_parser('complete', help='Completions at a position')
    _add_position(complete_p)
    complete_p.set_defaults(func=cmd_complete)

    definition_p = subparsers.add_parser('definition', help='Jump target definition')
    _add_position(definition_p)
    definition_p.set_defaults(func=cmd_definition)

    # config
    config_p = subparsers.add_parser('config', help='Show or write configuration')
    config_p.add_argument('--write', metavar='PATH', help='Write a default config file')
    config_p.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = get_config(Path(args.config) if args.config else None)
        level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.WARNING)
        logging.basicConfig(
            level=level,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%H:%M:%S'
        )
        logger.debug(f"Configuration: {config.to_dict()}")
        return args.func(args)
    except AnalysisError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
