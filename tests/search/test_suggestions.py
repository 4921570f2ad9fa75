"""Tests for relevant file suggestions."""

from pathlib import Path

from contextpilot.config import IndexerSettings
from contextpilot.context.files import ContextFiles
from contextpilot.embedding.mock import MockEmbeddingService
from contextpilot.indexers.index import EmbeddingIndex
from contextpilot.project.workspace import LocalWorkspace
from contextpilot.search.suggestions import RelevantFilesFinder


async def build_index(root: Path) -> EmbeddingIndex:
    (root / "src" / "billing").mkdir(parents=True)
    (root / "src" / "billing" / "invoice.py").write_text(
        "def create_invoice(customer):\n    return Invoice(customer)\n"
    )
    (root / "src" / "billing" / "tax.py").write_text(
        "def invoice_tax(invoice):\n    return invoice.total * 0.2\n"
    )
    (root / "src" / "users.py").write_text("def load_user(user_id):\n    pass\n")
    index = EmbeddingIndex(
        project_root=root,
        index_path=root.parent / "index.json",
        embedder=MockEmbeddingService(),
        indexer_settings=IndexerSettings(),
    )
    await index.index_project()
    return index


class TestRelevantFilesFinder:
    """Tests for RelevantFilesFinder.suggest."""

    async def test_suggests_by_basename(self, tmp_path: Path) -> None:
        root = tmp_path / "app"
        index = await build_index(root)

        suggestions = await RelevantFilesFinder(index).suggest("invoice", count=2)

        assert suggestions == {
            "invoice.py": str(root / "src" / "billing" / "invoice.py"),
            "tax.py": str(root / "src" / "billing" / "tax.py"),
        }

    async def test_excludes_enabled_files(self, tmp_path: Path) -> None:
        root = tmp_path / "app"
        index = await build_index(root)
        context_files = ContextFiles(LocalWorkspace(root))
        await context_files.add(str(root / "src" / "billing" / "invoice.py"))

        suggestions = await RelevantFilesFinder(index, context_files).suggest(
            "invoice"
        )

        assert "invoice.py" not in suggestions
        assert len(suggestions) == 2

    async def test_short_message_yields_nothing(self, tmp_path: Path) -> None:
        index = await build_index(tmp_path / "app")

        assert await RelevantFilesFinder(index).suggest("ab ") == {}
