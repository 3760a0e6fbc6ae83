from __future__ import annotations

import concurrent.futures
import csv
import datetime
import logging
import sys
from pathlib import Path
from typing import IO, Any

import pathspec
import yaml

from doctools.analyze.classifier import (
    ClassificationProfile,
    MatchMode,
    classify_profile,
)
from doctools.analyze.stats import SurfaceSummary

from . import models
from .denormalizer import denormalize
from .loader import RustdocLoader

logger = logging.getLogger(__name__)


class SurfaceService:
    """
    Loads rustdoc JSON graphs, denormalizes each on its own, merges the
    results and builds a SurfaceReport.
    """

    def __init__(
        self,
        *,
        app_config: dict[str, Any],
        inputs: list[Path],
    ) -> None:
        self._app_config = app_config
        self._inputs = inputs

        # Dependencies
        self._path_matcher = self._init_path_matcher()
        self._concurrency = max(1, self._app_config.get("concurrency") or 1)
        self._match_mode = MatchMode(self._app_config.get("match_mode", "prefix"))
        self._profiles = [
            ClassificationProfile.from_dict(name, p)
            for name, p in (self._app_config.get("profiles") or {}).items()
        ]

    def run(self) -> tuple[models.SurfaceReport, models.FlatItemSet]:
        """
        Executes the full scan and returns the report with the merged items.
        """
        start_time = datetime.datetime.now(datetime.timezone.utc)

        files, excluded_count = self._collect_files()
        logger.info(f"Denormalizing {len(files)} rustdoc graph(s)")

        stats = models.RunStats(
            graphs_scanned=len(files),
            graphs_excluded=excluded_count,
            graphs_loaded_ok=0,
            graphs_load_errors=0,
            items=0,
        )
        graphs: list[models.GraphRecord] = []
        item_sets = self._process_graphs(files, stats, graphs)

        items = models.FlatItemSet().merge(*item_sets)
        stats["items"] = len(items)
        return self._build_report(start_time, stats, graphs, items), items

    def write_yaml(self, report: models.SurfaceReport, path: str | None) -> None:
        """
        Writes the report as YAML to `path`, or to stdout when path is None.
        """
        data = dict(report)
        if not self._app_config.get("include_items", True):
            data.pop("items", None)

        if path is None:
            self._yaml_dump_no_alias(data, sys.stdout)
            return

        out_p = Path(path)
        out_p.parent.mkdir(parents=True, exist_ok=True)
        with open(out_p, "w", encoding="utf-8") as f:
            self._yaml_dump_no_alias(data, f)

        logger.info(f"Report written to: {out_p.resolve()}")

    def write_csv(self, items: models.FlatItemSet, path: str | None) -> None:
        """
        Writes one row per item to `path`, or to stdout when path is None.
        """
        if path is None:
            self._csv_dump(items, sys.stdout)
            return

        out_p = Path(path)
        out_p.parent.mkdir(parents=True, exist_ok=True)
        with open(out_p, "w", encoding="utf-8", newline="") as f:
            self._csv_dump(items, f)

        logger.info(f"Items written to: {out_p.resolve()}")

    # --- Private Helpers ---

    def _init_path_matcher(self) -> pathspec.PathSpec | None:
        patterns = self._app_config.get("exclude")
        if patterns:
            try:
                return pathspec.PathSpec.from_lines("gitwildmatch", patterns)
            except Exception as e:
                logger.warning(f"Invalid exclude patterns: {e}")
        return None

    def _collect_files(self) -> tuple[list[Path], int]:
        """Explicit files are kept as given; directories are searched for *.json."""
        found: list[Path] = []
        excluded = 0
        for entry in self._inputs:
            if entry.is_file():
                found.append(entry)
                continue
            if not entry.is_dir():
                raise FileNotFoundError(f"Input not found: {entry}")
            for f in entry.rglob("*.json"):
                if not f.is_file() or f.is_symlink():
                    continue
                rel = f.relative_to(entry).as_posix()
                if self._path_matcher and self._path_matcher.match_file(rel):
                    excluded += 1
                    continue
                found.append(f)

        return sorted(set(found)), excluded

    def _process_graphs(
        self,
        files: list[Path],
        stats: models.RunStats,
        graphs: list[models.GraphRecord],
    ) -> list[models.FlatItemSet]:
        results: dict[Path, tuple[models.GraphRecord, models.FlatItemSet] | str] = {}

        if self._concurrency == 1 or len(files) <= 1:
            for f in files:
                results[f] = GraphWorker.process(f)
        else:
            with concurrent.futures.ProcessPoolExecutor(
                max_workers=self._concurrency
            ) as executor:
                futures = {executor.submit(GraphWorker.process, f): f for f in files}
                for future in concurrent.futures.as_completed(futures):
                    f = futures[future]
                    try:
                        results[f] = future.result()
                    except Exception as e:
                        results[f] = f"Process Error: {e}"

        # Merge in input order, independent of completion order
        item_sets: list[models.FlatItemSet] = []
        for f in files:
            res = results[f]
            if isinstance(res, str):
                stats["graphs_load_errors"] += 1
                logger.error(f"Failed {f}: {res}")
                continue
            stats["graphs_loaded_ok"] += 1
            record, items = res
            graphs.append(record)
            item_sets.append(items)
        return item_sets

    def _build_report(
        self,
        start: datetime.datetime,
        stats: models.RunStats,
        graphs: list[models.GraphRecord],
        items: models.FlatItemSet,
    ) -> models.SurfaceReport:
        meta = models.Metadata(
            schema_version="1.0",
            generated_at=start.isoformat().replace("+00:00", "Z"),
            graphs=graphs,
            config_effective=dict(self._app_config),
        )
        classifications = [
            self._classification_record(p, items) for p in self._profiles
        ]
        return models.SurfaceReport(
            meta=meta,
            stats=stats,
            summary=SurfaceSummary.from_items(items).to_records(),
            classifications=classifications,
            items=[i.to_row() for i in items],
        )

    def _classification_record(
        self, profile: ClassificationProfile, items: models.FlatItemSet
    ) -> models.ClassificationRecord:
        result = classify_profile(items, profile, self._match_mode)
        return models.ClassificationRecord(
            profile=profile.name,
            flag=profile.flag,
            match_mode=self._match_mode.value,
            exclude=list(profile.exclude),
            stable_total=result.stable_total,
            excluded=result.excluded,
            potential=result.potential,
            matched=result.matched,
            ratio=round(result.ratio, 4),
        )

    def _yaml_dump_no_alias(self, data: Any, stream: IO[str]) -> None:
        class MultilineDumper(yaml.SafeDumper):
            def represent_scalar(self, tag, value, style=None):
                if isinstance(value, str) and "\n" in value:
                    style = "|"
                return super().represent_scalar(tag, value, style)

        class NoAliasDumper(MultilineDumper):
            def ignore_aliases(self, data):
                return True

        yaml.dump(
            data, stream, Dumper=NoAliasDumper, sort_keys=False, allow_unicode=True
        )

    def _csv_dump(self, items: models.FlatItemSet, stream: IO[str]) -> None:
        writer = csv.DictWriter(stream, fieldnames=list(models.ItemRow.__annotations__))
        writer.writeheader()
        for item in items:
            writer.writerow(item.to_row())


class GraphWorker:
    """
    Worker for one rustdoc graph. Runs in a child process, so it returns an
    error string instead of raising.
    """

    @staticmethod
    def process(
        file_path: Path,
    ) -> tuple[models.GraphRecord, models.FlatItemSet] | str:
        try:
            crate = RustdocLoader.load_file(file_path)
        except (OSError, ValueError) as e:
            return f"Load Error: {e}"

        items = denormalize(crate)
        record = models.GraphRecord(
            source=str(file_path),
            crate=crate.name,
            crate_version=crate.crate_version,
            format_version=crate.format_version,
            items=len(items),
        )
        return record, items
