"""Sheet accessor.

Placeholder for a real spreadsheet API integration: ``fetch_records`` serves
mock rows after an artificial delay and ``update_record`` accepts every
payload. Swap ``MockSheetsAccessor`` for a real client with the same two
coroutines.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, List, Optional, Protocol

from core.config import AccessorDelays, SheetConfig

logger = logging.getLogger(__name__)


MOCK_DASHBOARD_ROWS: List[Dict[str, Any]] = [
    {"id": "1", "name": "Task 1", "status": "In Progress", "progress": 75, "assignee": "John Doe"},
    {"id": "2", "name": "Task 2", "status": "Completed", "progress": 100, "assignee": "Jane Smith"},
    {"id": "3", "name": "Task 3", "status": "Not Started", "progress": 0, "assignee": "Bob Johnson"},
    {"id": "4", "name": "Task 4", "status": "In Progress", "progress": 30, "assignee": "Alice Brown"},
    {"id": "5", "name": "Task 5", "status": "In Review", "progress": 90, "assignee": "Charlie White"},
]

MOCK_DOCUMENT_ROWS: List[Dict[str, Any]] = [
    {"id": "1", "name": "Process Validation Protocol", "category": "Protocols", "link": "https://docs.google.com/document/d/example1", "type": "google-doc"},
    {"id": "2", "name": "Risk Assessment Report", "category": "Reports", "link": "https://docs.google.com/document/d/example2", "type": "google-doc"},
    {"id": "3", "name": "Technical Specifications", "category": "Technical", "link": "https://example.com/specs.pdf", "type": "pdf"},
    {"id": "4", "name": "Validation Summary Report", "category": "Reports", "link": "https://example.com/validation.pdf", "type": "pdf"},
    {"id": "5", "name": "User Requirements Specification", "category": "Technical", "link": "https://docs.google.com/document/d/example3", "type": "google-doc"},
    {"id": "6", "name": "Functional Specification", "category": "Technical", "link": "https://example.com/functional.pdf", "type": "pdf"},
    {"id": "7", "name": "Test Script", "category": "Testing", "link": "https://docs.google.com/document/d/example4", "type": "google-doc"},
    {"id": "8", "name": "Qualification Report", "category": "Reports", "link": "https://example.com/qualification.pdf", "type": "pdf"},
]

MOCK_TABLEAUX_ROWS: List[Dict[str, Any]] = [
    {"id": "1", "name": "Process Flow Diagram", "category": "Process Flows", "link": "https://docs.google.com/spreadsheets/d/example1", "type": "google-sheet"},
    {"id": "2", "name": "Risk Assessment Matrix", "category": "Risk Management", "link": "https://docs.google.com/spreadsheets/d/example2", "type": "google-sheet"},
    {"id": "3", "name": "Quality Metrics Dashboard", "category": "Quality Management", "link": "https://docs.google.com/spreadsheets/d/example3", "type": "google-sheet"},
    {"id": "4", "name": "Validation Test Results", "category": "Testing", "link": "https://docs.google.com/spreadsheets/d/example4", "type": "google-sheet"},
    {"id": "5", "name": "Project Schedule Gantt Chart", "category": "Project Management", "link": "https://docs.google.com/spreadsheets/d/example5", "type": "google-sheet"},
]

MOCK_DIAGRAM_ROWS: List[Dict[str, Any]] = [
    {"id": "1", "name": "Process Flow Overview", "category": "Process Flows", "link": "https://example.com/diagrams/process-flow.html", "type": "html"},
    {"id": "2", "name": "Equipment Layout", "category": "Facilities", "link": "https://example.com/diagrams/layout.pdf", "type": "pdf"},
    {"id": "3", "name": "Cleaning Sequence", "category": "Process Flows", "link": "https://example.com/diagrams/cleaning.html", "type": "html"},
    {"id": "4", "name": "Utilities Schematic", "category": "Facilities", "link": "https://example.com/diagrams/utilities.pdf", "type": "pdf"},
    {"id": "5", "name": "Sampling Plan Map", "category": "Quality", "link": "https://docs.google.com/document/d/diagram5", "type": "google-doc"},
    {"id": "6", "name": "Deviation Workflow", "category": "Quality", "link": "https://example.com/diagrams/deviation.html", "type": "html"},
]


def mock_rows_for(range_: str) -> List[Dict[str, Any]]:
    if "documents" in range_:
        rows = MOCK_DOCUMENT_ROWS
    elif "tableaux" in range_:
        rows = MOCK_TABLEAUX_ROWS
    elif "diagrammes" in range_:
        rows = MOCK_DIAGRAM_ROWS
    else:
        rows = MOCK_DASHBOARD_ROWS
    return copy.deepcopy(rows)


async def fetch_records(config: SheetConfig, *, delay: Optional[float] = None) -> List[Dict[str, Any]]:
    logger.info("fetching rows spreadsheet=%s range=%s", config.spreadsheet_id, config.range)
    await asyncio.sleep(AccessorDelays().fetch if delay is None else delay)
    return mock_rows_for(config.range)


async def update_record(config: SheetConfig, payload: Dict[str, Any], *, delay: Optional[float] = None) -> bool:
    logger.info("updating row spreadsheet=%s range=%s id=%s", config.spreadsheet_id, config.range, payload.get("id"))
    logger.debug("update payload: %s", payload)
    await asyncio.sleep(AccessorDelays().update if delay is None else delay)
    return True


class SheetsAccessor(Protocol):
    async def fetch_records(self, config: SheetConfig) -> List[Dict[str, Any]]:
        ...

    async def update_record(self, config: SheetConfig, payload: Dict[str, Any]) -> bool:
        ...


class MockSheetsAccessor:
    """Default accessor backed by the mock rows above."""

    def __init__(self, delays: Optional[AccessorDelays] = None) -> None:
        self.delays = delays or AccessorDelays()

    async def fetch_records(self, config: SheetConfig) -> List[Dict[str, Any]]:
        return await fetch_records(config, delay=self.delays.fetch)

    async def update_record(self, config: SheetConfig, payload: Dict[str, Any]) -> bool:
        return await update_record(config, payload, delay=self.delays.update)
