"""Scenario and run result data structures produced by the runner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ScenarioResult(BaseModel):
    name: str
    description: str = ""
    worker_id: int = 0
    result: str  # pass, fail, error
    duration_seconds: float = 0.0
    failure_reason: Optional[str] = None
    error_type: Optional[str] = None
    screenshot_path: Optional[str] = None
    expected_items: int = 0
    expected_total: int = 0


class RunResult(BaseModel):
    run_id: str
    started_at: str
    completed_at: str = ""
    target_url: str
    workers: int = 1
    total: int = 0
    passed: int = 0
    failed: int = 0
    errors: int = 0
    duration_seconds: float = 0.0
    scenario_results: list[ScenarioResult] = Field(default_factory=list)
    worker_errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.total > 0 and self.passed == self.total and not self.worker_errors

    def tally(self) -> None:
        """Recompute totals from scenario_results."""
        self.total = len(self.scenario_results)
        self.passed = sum(1 for r in self.scenario_results if r.result == "pass")
        self.failed = sum(1 for r in self.scenario_results if r.result == "fail")
        self.errors = sum(1 for r in self.scenario_results if r.result == "error")

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2, ensure_ascii=False)
        return path
