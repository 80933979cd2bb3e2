"""Batch specialization: every template times every binding.

Each template is parsed once; its (template, binding) pairs then run on a
thread pool against the shared, read-only parse. A failing pair is recorded
in its JobResult and never stops the other pairs.
"""
from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from itertools import product
from pathlib import Path
from typing import Iterable, Optional, Sequence

from tqdm import tqdm

from jtemplate.internals import errors as er
from jtemplate.internals.exceptions import TemplateReadError
from jtemplate.internals.parse_errors import handle_specialization_exception
from jtemplate.internals.report import Reporter
from jtemplate.specialize.options import TemplateOptions, Type
from jtemplate.specialize.processor import SignatureProcessor


@dataclass(frozen=True)
class Job:
    processor: SignatureProcessor
    options: TemplateOptions
    output: Optional[Path] = None

    @property
    def template(self) -> str:
        return self.processor.filename


@dataclass
class JobResult:
    template: str
    options: Optional[TemplateOptions]
    output: Optional[Path]
    reporter: Reporter
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.reporter.has_errors

    @property
    def exit_code(self) -> int:
        return 2 if self.error is not None else self.reporter.exit_code


def enumerate_bindings(slot_count: int, ktypes: Sequence[Type] = tuple(Type),
                       vtypes: Sequence[Type] = tuple(Type)) -> list[TemplateOptions]:
    """Cross product of the requested types over the template's slots."""
    if slot_count < 2:
        return [TemplateOptions(k) for k in ktypes]
    return [TemplateOptions(k, v) for k, v in product(ktypes, vtypes)]


def read_template(path: Path) -> str:
    """Template source as text; undecodable bytes raise TE5001."""
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise TemplateReadError(path=path, reason=f"not valid UTF-8 (byte {e.start})") from e


def load_template(path: Path) -> SignatureProcessor:
    src = read_template(path)
    return SignatureProcessor(src, filename=str(path))


def output_path(processor: SignatureProcessor, options: TemplateOptions,
                template: Path, source_root: Path, output_root: Path) -> Path:
    """`<output_root>/<template dir relative to source_root>/<specialized name><suffix>`."""
    try:
        rel = template.parent.relative_to(source_root)
    except ValueError:
        rel = Path()
    fallback = None if processor.primary_type() is not None else template.stem
    name = processor.specialized_type_name(options, fallback) or template.stem
    return output_root / rel / f"{name}{template.suffix}"


def plan_jobs(templates: Iterable[Path], source_root: Path, output_root: Optional[Path],
              ktypes: Sequence[Type] = tuple(Type),
              vtypes: Sequence[Type] = tuple(Type)) -> tuple[list[Job], list[JobResult]]:
    """Parse each template once and pair it with every binding.

    Returns:
        Tuple of (jobs, failures); templates that cannot be read or parsed
        are reported as failures instead of jobs. A binding whose output path was
        already taken by an earlier binding of the same template is reported
        as a TE5004 failure; the earlier binding keeps the file.
    """
    jobs: list[Job] = []
    failures: list[JobResult] = []
    for template in templates:
        try:
            processor = load_template(template)
        except Exception as e:
            reporter = Reporter(filename=str(template))
            if not handle_specialization_exception(e, reporter):
                raise
            failures.append(JobResult(str(template), None, None, reporter))
            continue

        taken: dict[Path, TemplateOptions] = {}
        for options in enumerate_bindings(processor.slot_count, ktypes, vtypes):
            out = None
            if output_root is not None:
                out = output_path(processor, options, template, source_root, output_root)
                if out in taken:
                    reporter = Reporter(filename=str(template), context=str(options))
                    er.emit(reporter, er.ERR.TE5004, None, path=out, options=options, other=taken[out])
                    failures.append(JobResult(str(template), options, out, reporter))
                    continue
                taken[out] = options
            jobs.append(Job(processor, options, out))
    return jobs, failures


def run_job(job: Job) -> JobResult:
    processor = job.processor
    reporter = Reporter(source=processor.source, filename=processor.filename,
                        context=str(job.options))
    result = JobResult(job.template, job.options, job.output, reporter)
    try:
        result.text = processor.process(job.options, reporter)
    except Exception as e:
        if not handle_specialization_exception(e, reporter):
            result.error = f"{type(e).__name__}: {e}"
        return result

    if job.output is not None:
        try:
            job.output.parent.mkdir(parents=True, exist_ok=True)
            job.output.write_text(result.text, encoding="utf-8")
        except OSError as e:
            er.emit(reporter, er.ERR.TE5003, None, path=job.output, reason=e.strerror or str(e))
    return result


def run_jobs(jobs: Sequence[Job], workers: Optional[int] = None,
             progress: Optional[bool] = None) -> list[JobResult]:
    """Run `jobs` on a thread pool; results come back in job order."""
    if progress is None:
        progress = sys.stderr.isatty()

    results: list[Optional[JobResult]] = [None] * len(jobs)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(run_job, job): i for i, job in enumerate(jobs)}
        if progress:
            pbar = tqdm(total=len(jobs), desc="Specializing", unit="file",
                        bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]")
        for future in as_completed(futures):
            results[futures[future]] = future.result()
            if progress:
                pbar.update(1)
        if progress:
            pbar.close()
    return results
