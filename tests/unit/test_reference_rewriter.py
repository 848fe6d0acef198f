import os
from pathlib import Path
from typing import Mapping

import pytest

from assetstamp.application.services.replacement_table import ReplacementTable
from assetstamp.application.services.rewrite_service import ReferenceRewriter
from assetstamp.core.errors import AssetIOError, StructuralParseError
from assetstamp.domain.models.source import Declaration, SourceFile
from assetstamp.infrastructure.minifiers.registry import IdentityMinimizer
from assetstamp.infrastructure.store.layout import StoreLayout
from assetstamp.infrastructure.store.resource_store import ResourceStore


def _write(path: Path, content: str | bytes, mtime: float | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode("utf-8")
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def _bootstrap(tmp_path: Path) -> tuple[ResourceStore, ReplacementTable, Path]:
    web = (tmp_path / "www").resolve()
    store = ResourceStore(StoreLayout(parent_dir=web, resource_dir=web / "css", extension=".css"), IdentityMinimizer())
    store.ingest_file(_write(web / "css" / "old.css", "old{}", mtime=1_000))
    store.ingest_file(_write(web / "css" / "new.css", "new{}", mtime=3_000))
    return store, ReplacementTable.from_records(store.records), web


class RecordingRewriter:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, dict[int, Declaration]]] = []

    def rewrite(self, path: Path, text: str, declarations: Mapping[int, Declaration]) -> str:
        self.calls.append((path, dict(declarations)))
        return text.replace("OLD_STYLE", "'/css/old.css'")


def test_rewrites_quoted_references(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    old = store.get_by_source_path((tmp_path / "www" / "css" / "old.css").resolve())
    page = _write(
        tmp_path / "src" / "page.html",
        "<link href=\"/css/old.css\">\n<link href='/css/old.css'>\n<a href='/css/old.css?v=2'>\n",
    )

    changed = ReferenceRewriter(store, table).rewrite_file(page)

    assert changed is True
    assert page.read_text(encoding="utf-8") == (
        f"<link href=\"{old.hashed_reference}\">\n"
        f"<link href='{old.hashed_reference}'>\n"
        "<a href='/css/old.css?v=2'>\n"
    )


def test_unchanged_file_is_not_touched(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    page = _write(tmp_path / "src" / "plain.html", "<p>'/css/missing.css'</p>", mtime=500)

    changed = ReferenceRewriter(store, table, preserve_mtime=True).rewrite_file(page)

    assert changed is False
    assert page.read_text(encoding="utf-8") == "<p>'/css/missing.css'</p>"
    assert page.stat().st_mtime == 500


def test_mtime_is_max_of_source_and_referenced_resources(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    page = _write(tmp_path / "src" / "page.html", "'/css/old.css' '/css/new.css'", mtime=2_000)

    ReferenceRewriter(store, table, preserve_mtime=True).rewrite_file(page)

    assert page.stat().st_mtime == 3_000


def test_mtime_keeps_newer_source_time(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    page = _write(tmp_path / "src" / "page.html", "'/css/old.css'", mtime=2_000)

    ReferenceRewriter(store, table, preserve_mtime=True).rewrite_file(page)

    assert page.stat().st_mtime == 2_000


def test_line_endings_and_undecodable_bytes_survive(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    old = store.records[0]
    page = _write(tmp_path / "src" / "page.html", b"\xff\r\n'/css/old.css'\r\n")

    ReferenceRewriter(store, table).rewrite_file(page)

    assert page.read_bytes() == b"\xff\r\n'" + old.hashed_reference.encode() + b"'\r\n"


def test_php_files_go_through_the_language_rewriter(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    old = store.records[0]
    php = _write(tmp_path / "src" / "Page.php", "<?php\nnamespace App;\n\nclass Page\n{\n    const CSS = OLD_STYLE;\n}\n")
    html = _write(tmp_path / "src" / "page.html", "OLD_STYLE")
    recorder = RecordingRewriter()

    rewriter = ReferenceRewriter(store, table, language_rewriters={"<?php": recorder})
    rewriter.rewrite_file(php)
    rewriter.rewrite_file(html)

    assert recorder.calls == [(php, {4: Declaration("App", "Page", 4)})]
    assert f"const CSS = '{old.hashed_reference}';" in php.read_text(encoding="utf-8")
    assert html.read_text(encoding="utf-8") == "OLD_STYLE"


def test_declaration_scan_only_runs_for_php(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    script = _write(tmp_path / "src" / "tool.tpl", "#!tpl\n<?php\nnamespace App {\n}\n'/css/old.css'\n")
    recorder = RecordingRewriter()

    changed = ReferenceRewriter(store, table, language_rewriters={"#!tpl": recorder}).rewrite_file(script)

    assert changed is True
    assert recorder.calls == [(script, {})]


def test_structural_errors_propagate(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    php = _write(tmp_path / "src" / "Bad.php", "<?php\nnamespace App {\n}\n")

    with pytest.raises(StructuralParseError):
        ReferenceRewriter(store, table).rewrite_all([SourceFile(php, php)])


def test_rewrite_all_processes_in_canonical_order_and_reports_io_errors(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    b = _write(tmp_path / "src" / "b.html", "'/css/old.css'")
    a = _write(tmp_path / "src" / "a.html", "nothing here")
    missing = tmp_path / "src" / "0-missing.html"
    recorder = RecordingRewriter()

    errors = []
    result = ReferenceRewriter(store, table, language_rewriters={"": recorder}).rewrite_all(
        [SourceFile(b, b), SourceFile(a, a), SourceFile(missing, missing)],
        on_error=errors.append,
    )

    assert result.scanned == 3
    assert result.updated == 1
    assert len(errors) == 1
    assert isinstance(errors[0], AssetIOError)
    assert errors[0].path == missing
    assert [path for path, _ in recorder.calls] == [a, b]


def test_rewrite_all_raises_without_handler(tmp_path: Path) -> None:
    store, table, _ = _bootstrap(tmp_path)
    missing = tmp_path / "src" / "missing.html"

    with pytest.raises(AssetIOError):
        ReferenceRewriter(store, table).rewrite_all([SourceFile(missing, missing)])
