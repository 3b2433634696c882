"""
Task set for a multi-crate cargo workspace.

Each subcrate is linted on its own, from inside its directory, so a lint
pass can't be masked by features another workspace member enables.
"""

from __future__ import annotations

from typing import List, Sequence

from .dsl import cmd, collect, for_each, sh, task
from .model import TaskDefinition

SUBCRATES = ("nodes-common", "nodes-observability")


def workspace_tasks(subcrates: Sequence[str] = SUBCRATES) -> List[TaskDefinition]:
    return collect(
        task(
            "default",
            private=True,
            description="List available tasks",
        ),
        task(
            "lint",
            sh("cargo fmt --all -- --check", name="fmt check"),
            for_each("lint-subcrate", subcrates),
            description="Check formatting, then lint every subcrate standalone",
        ),
        task(
            "lint-subcrate",
            sh("cargo all-features clippy --all-targets -q -- -D warnings", name="clippy ${SUBCRATE}"),
            cmd(
                "cargo", "all-features", "doc", "-q", "--no-deps",
                env={"RUSTDOCFLAGS": "-D warnings"},
                name="doc ${SUBCRATE}",
            ),
            params=["SUBCRATE"],
            cwd="${SUBCRATE}",
            description="Clippy and rustdoc with warnings as errors, inside one subcrate",
        ),
        task(
            "test",
            sh("cargo test --all-features --all-targets", name="test"),
            description="Run the whole workspace test suite",
        ),
        task(
            "check-pr",
            "lint",
            "test",
            description="Everything CI runs on a pull request",
        ),
    )
