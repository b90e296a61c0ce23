"""Tests for the executable tree."""

from pathlib import Path

import pytest

from e2e_harness.models.result import TestKey
from e2e_harness.tree import SpecFile, SuiteNode, TestNode


async def noop(ctx: object) -> None:
    return None


class TestSpecFile:
    """Tests for SpecFile construction and traversal."""

    def test_declared_keys_follow_declaration_order(self) -> None:
        """Keys list tests depth-first with their suite paths."""
        spec = SpecFile(
            path=Path("x.spec.yaml"),
            name="x.spec.yaml",
            children=[
                TestNode(title="a", body=noop),
                SuiteNode(
                    title="Counter",
                    children=[
                        TestNode(title="a", body=noop),
                        SuiteNode(
                            title="Nested", children=[TestNode(title="b", body=noop)]
                        ),
                    ],
                ),
            ],
        )

        assert spec.declared_keys() == [
            TestKey(spec="x.spec.yaml", suite_path=(), title="a"),
            TestKey(spec="x.spec.yaml", suite_path=("Counter",), title="a"),
            TestKey(spec="x.spec.yaml", suite_path=("Counter", "Nested"), title="b"),
        ]

    def test_rejects_sibling_tests_with_same_title(self) -> None:
        """Same-titled sibling tests would merge into one outcome."""
        with pytest.raises(ValueError, match="Duplicate test title 'same'"):
            SpecFile(
                path=Path("x.spec.yaml"),
                name="x.spec.yaml",
                children=[
                    TestNode(title="same", body=noop),
                    TestNode(title="same", body=noop),
                ],
            )

    def test_rejects_nested_sibling_suites_with_same_title(self) -> None:
        """Duplicate suite titles are found at any depth."""
        with pytest.raises(ValueError, match="in suite 'Counter'"):
            SpecFile(
                path=Path("x.spec.yaml"),
                name="x.spec.yaml",
                children=[
                    SuiteNode(
                        title="Counter",
                        children=[SuiteNode(title="Inner"), SuiteNode(title="Inner")],
                    )
                ],
            )
