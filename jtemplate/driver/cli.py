from __future__ import annotations
import argparse, sys
from pathlib import Path
from typing import Optional, Sequence

from jtemplate import __version__
from jtemplate.internals import errors as er
from jtemplate.internals.exceptions import SpecializationError
from jtemplate.internals.parse_errors import handle_specialization_exception
from jtemplate.internals.report import Reporter
from jtemplate.internals.version import print_banner
from jtemplate.specialize.options import Type
from jtemplate.specialize.processor import SignatureProcessor
from jtemplate.syntax.lexer import dump_tokens
from jtemplate.syntax.printer import dump_tree


def _parse_types(value: Optional[str]) -> tuple[Type, ...]:
    """`int,long,generic` -> types; None means every type."""
    if value is None:
        return tuple(Type)
    return tuple(dict.fromkeys(Type.parse(v) for v in value.split(",") if v.strip()))


def _report_exception(e: Exception, reporter: Reporter, show_traceback: bool) -> int:
    if not handle_specialization_exception(e, reporter):
        raise e
    reporter.print()
    if show_traceback:
        import traceback
        traceback.print_exc()
    return 2


def _run_single(args: argparse.Namespace) -> int:
    from jtemplate.driver.batch import read_template

    src_path = Path(args.source)
    reporter = Reporter(filename=str(src_path))
    try:
        src = read_template(src_path)
    except (OSError, SpecializationError) as e:
        return _report_exception(e, reporter, args.traceback)

    reporter.source = src
    try:
        sp = SignatureProcessor(src, filename=str(src_path))

        if args.dump_tokens:
            print(dump_tokens(sp.tokens))
            print()
        if args.dump_tree:
            print(dump_tree(sp.tree, sp.tokens))
            print()

        if args.ktype is None:
            if args.dump_tokens or args.dump_tree:
                return 0
            print("error: --ktype is required (or use --all)", file=sys.stderr)
            return 2

        options = sp.bind(args.ktype, args.vtype)
        if args.dump_ops:
            for op in sp.rewrite_ops(options):
                print(op)
            print()

        text = sp.process(options, reporter)
    except SpecializationError as e:
        return _report_exception(e, reporter, args.traceback)

    if args.out:
        out_path = Path(args.out)
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(text, encoding="utf-8")
        except OSError as e:
            er.emit(reporter, er.ERR.TE5003, None, path=out_path, reason=e.strerror or str(e))
            reporter.print()
            return 2
        print(f"Success! Wrote {out_path} ({options})", file=sys.stderr)
    else:
        sys.stdout.write(text)

    reporter.print()
    if reporter.items:
        print(reporter.summary(), file=sys.stderr)
    return reporter.exit_code


def _run_batch(templates: Sequence[Path], source_root: Path, output_root: Path,
               ktypes: Sequence[Type], vtypes: Sequence[Type], jobs: Optional[int]) -> int:
    from jtemplate.driver.batch import plan_jobs, run_jobs

    planned, failures = plan_jobs(templates, source_root, output_root, ktypes, vtypes)
    results = failures + run_jobs(planned, workers=jobs)

    exit_code = 0
    for r in results:
        r.reporter.print()
        if r.error is not None:
            print(f"error: {r.template} ({r.options}): {r.error}", file=sys.stderr)
        exit_code = max(exit_code, r.exit_code)

    written = sum(1 for r in results if r.ok and r.output is not None)
    failed = sum(1 for r in results if not r.ok)
    print(f"Wrote {written} file(s) to {output_root}" + (f", {failed} failed" if failed else ""),
          file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    print_banner()
    ap = argparse.ArgumentParser(prog="jtemplate", description="Java template specializer")

    ap.add_argument("source", nargs="?", help="Template file (a directory is allowed with --all)")
    ap.add_argument("--ktype", metavar="TYPE",
                    help="Binding of KType: generic or a primitive (comma-separated list with --all)")
    ap.add_argument("--vtype", metavar="TYPE",
                    help="Binding of VType for two-slot templates (comma-separated list with --all)")
    ap.add_argument("-o", "--out", metavar="OUT",
                    help="Output file (default: stdout)")
    ap.add_argument("--all", action="store_true",
                    help="Generate every binding of the template(s) into --output-dir")
    ap.add_argument("--output-dir", metavar="DIR",
                    help="Output root for --all")
    ap.add_argument("--manifest", metavar="FILE",
                    help="Run the batch described by a templates.toml file")
    ap.add_argument("-j", "--jobs", type=int, default=None,
                    help="Number of parallel specialization jobs")
    ap.add_argument("--dump-tokens", action="store_true", help="Print the token stream")
    ap.add_argument("--dump-tree", action="store_true", help="Print the structural tree")
    ap.add_argument("--dump-ops", action="store_true", help="Print the rewrite operations")
    ap.add_argument("--traceback", action="store_true",
                    help="Print full traceback on errors (for debugging)")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = ap.parse_args(argv)

    if args.jobs is not None and args.jobs < 1:
        print(f"error: --jobs must be at least 1 (got {args.jobs})", file=sys.stderr)
        return 2

    if args.manifest:
        from jtemplate.driver.manifest import load_manifest
        reporter = Reporter(filename=args.manifest)
        try:
            m = load_manifest(Path(args.manifest))
        except SpecializationError as e:
            return _report_exception(e, reporter, args.traceback)
        return _run_batch(m.templates(), m.source, m.output, m.ktypes, m.vtypes, args.jobs or m.jobs)

    if not args.source:
        print("error: source file required (unless using --manifest)", file=sys.stderr)
        return 2

    if args.all:
        if not args.output_dir:
            print("error: --all requires --output-dir", file=sys.stderr)
            return 2
        reporter = Reporter(filename=args.source)
        try:
            ktypes, vtypes = _parse_types(args.ktype), _parse_types(args.vtype)
        except SpecializationError as e:
            return _report_exception(e, reporter, args.traceback)
        src_path = Path(args.source)
        if src_path.is_dir():
            templates, root = sorted(src_path.rglob("*.java")), src_path
        else:
            templates, root = [src_path], src_path.parent
        return _run_batch(templates, root, Path(args.output_dir), ktypes, vtypes, args.jobs)

    return _run_single(args)


if __name__ == "__main__":
    raise SystemExit(main())
