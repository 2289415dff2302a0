"""CatalogStore — loads the YAML catalogs from ``v1/`` into typed models.

This is the single source of truth for questionnaire data at runtime.  The
store is loaded once at startup and is read-only afterwards.

Usage::

    catalog = CatalogStore()        # defaults to v1/ relative to repo root
    catalog.load()                  # parse all YAML files

    q = catalog.get_question("lump_detected")
    script = catalog.get_script("palpation")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import TypeAdapter

from selfexam_rulesets.models.question import Question, Section
from selfexam_rulesets.models.self_check import (
    ClarificationEntry,
    ConversationNode,
    QuestionNode,
    SelfCheckStep,
    iter_question_nodes,
)

logger = logging.getLogger(__name__)

_SCRIPT_ADAPTER = TypeAdapter(list[ConversationNode])

DEFAULT_GENERIC_CLARIFICATION_KEY = "selfCheck.clarify.generic"


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# CatalogStore
# ---------------------------------------------------------------------------

class CatalogStore:
    """Loads all YAML from ``v1/`` and provides typed lookup.

    Attributes populated after :meth:`load`:

        sections        — list[Section] (exam questionnaire, ordered)
        steps           — list[SelfCheckStep] (self-check flow, ordered)
        conversations   — dict[step_id, list[ConversationNode]]
        clarifications  — dict[step_id, list[ClarificationEntry]]
        generic_clarification_key — fallback clarification response key

    The directory defaults to ``$SELFEXAM_CATALOG_DIR`` when set, otherwise
    ``v1/`` under the repo root.
    """

    def __init__(self, catalog_dir: str | Path | None = None) -> None:
        if catalog_dir is None:
            catalog_dir = os.getenv("SELFEXAM_CATALOG_DIR") or find_repo_root() / "v1"
        self._base = Path(catalog_dir)

        # Populated by load()
        self.sections: list[Section] = []
        self.steps: list[SelfCheckStep] = []
        self.conversations: dict[str, list[ConversationNode]] = {}
        self.clarifications: dict[str, list[ClarificationEntry]] = {}
        self.generic_clarification_key: str = DEFAULT_GENERIC_CLARIFICATION_KEY

        self._questions: dict[str, Question] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse all YAML files under the catalog directory into typed models.

        Call this once at startup.  Raises ``FileNotFoundError`` if expected
        YAML files are missing and ``ValueError`` if question ids collide.
        """
        self._load_exam()
        self._load_self_check()
        logger.info(
            "CatalogStore loaded: %d sections, %d questions, %d steps, %d scripts",
            len(self.sections),
            len(self._questions),
            len(self.steps),
            len(self.conversations),
        )

    def _load_exam(self) -> None:
        """Load v1/exam/sections.yaml and index questions by qid."""
        self.sections = [
            Section(**raw) for raw in load_yaml(self._base / "exam" / "sections.yaml")
        ]

        self._questions = {}
        for section in self.sections:
            for q in section.questions:
                if q.qid in self._questions:
                    raise ValueError(f"Duplicate exam question id: {q.qid}")
                self._questions[q.qid] = q

    def _load_self_check(self) -> None:
        """Load v1/self_check/*.yaml — steps, conversation scripts, clarifications."""
        sc_dir = self._base / "self_check"

        self.steps = [SelfCheckStep(**raw) for raw in load_yaml(sc_dir / "steps.yaml")]

        # Top-level keys starting with "_" hold YAML anchors, not scripts
        raw_scripts = load_yaml(sc_dir / "conversations.yaml") or {}
        self.conversations = {
            step_id: _SCRIPT_ADAPTER.validate_python(nodes)
            for step_id, nodes in raw_scripts.items()
            if not step_id.startswith("_")
        }

        # Answers from all steps are merged into one dict, so question-node
        # ids must be unique across every script.
        seen: dict[str, str] = {}
        for step_id, nodes in self.conversations.items():
            for node in iter_question_nodes(nodes):
                if node.id in seen:
                    raise ValueError(
                        f"Duplicate conversation question id: {node.id} "
                        f"(steps {seen[node.id]} and {step_id})"
                    )
                seen[node.id] = step_id

        for step in self.steps:
            if step.id not in self.conversations:
                logger.warning("Self-check step %s has no conversation script", step.id)

        clar_path = sc_dir / "clarifications.yaml"
        if clar_path.exists():
            raw_clar = load_yaml(clar_path) or {}
            self.generic_clarification_key = raw_clar.get(
                "generic_response_key", DEFAULT_GENERIC_CLARIFICATION_KEY
            )
            self.clarifications = {
                step_id: [ClarificationEntry(**e) for e in entries]
                for step_id, entries in (raw_clar.get("steps") or {}).items()
            }

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def all_questions(self) -> list[Question]:
        """Every exam question, flat, in catalog order."""
        return [q for section in self.sections for q in section.questions]

    def get_question(self, qid: str) -> Question:
        """Return an exam question by qid.

        Raises ``KeyError`` if the qid is unknown.
        """
        try:
            return self._questions[qid]
        except KeyError:
            raise KeyError(f"Unknown exam question: {qid}") from None

    def get_step(self, step_id: str) -> SelfCheckStep:
        """Return a self-check step by id.

        Raises ``KeyError`` if the step is unknown.
        """
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Unknown self-check step: {step_id}")

    def get_script(self, step_id: str) -> list[ConversationNode]:
        """Return the conversation script for a step (empty if it has none)."""
        return self.conversations.get(step_id, [])

    def get_clarifications(self, step_id: str) -> list[ClarificationEntry]:
        """Return the clarification entries for a step (empty if none)."""
        return self.clarifications.get(step_id, [])

    def conversation_questions(self) -> list[QuestionNode]:
        """Every conversation question node, in step order then script order."""
        ordered_ids = [s.id for s in self.steps]
        # Scripts for unknown steps still score, after the known ones
        ordered_ids += [sid for sid in self.conversations if sid not in ordered_ids]
        return [
            node
            for sid in ordered_ids
            for node in iter_question_nodes(self.get_script(sid))
        ]
