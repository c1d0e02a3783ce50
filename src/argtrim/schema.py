from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel


class TextEditDTO(BaseModel):
    path: str
    start: Tuple[int, int]
    end: Tuple[int, int]
    replacement: str


class RemovalDTO(BaseModel):
    path: str
    line: int
    column: int
    callee: str
    positions: List[int]


class RewriteResponseDTO(BaseModel):
    exit_code: int = 0
    changed_files: List[str] = []
    removals: List[RemovalDTO] = []
    edits: List[TextEditDTO] = []
    warnings: List[str] = []
    errors: List[str] = []


class ArgumentDecisionDTO(BaseModel):
    position: int
    argument: str
    default: Optional[str] = None
    status: str


class CallDecisionDTO(BaseModel):
    line: int
    column: int
    callee: str
    kind: str
    eligible: bool
    arguments: List[ArgumentDecisionDTO] = []
    plan: List[int] = []


class ExplainResponseDTO(BaseModel):
    path: str
    line: int
    calls: List[CallDecisionDTO] = []
    errors: List[str] = []
