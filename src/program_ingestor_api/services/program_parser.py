"""
Program parser

Orchestrates a workbook upload:
1. Read sheets in file order (one sheet = one phase)
2. Extract and assemble every sheet concurrently
3. Join the results in sheet order and build the program
"""

import asyncio
import logging
import re
from typing import List, Optional

from program_ingestor_api.config import settings
from program_ingestor_api.models import ParsedPhase, ParsedProgram, SheetFailure
from program_ingestor_api.parsers.models import SheetPayload
from program_ingestor_api.parsers.workbook_reader import read_workbook
from program_ingestor_api.services.phase_assembler import assemble_phase
from program_ingestor_api.services.sheet_extractor import SheetExtractor

logger = logging.getLogger(__name__)

_EXTENSION_RE = re.compile(r"\.(xlsx|xlsm|xls|csv)$", re.IGNORECASE)
DEFAULT_PROGRAM_NAME = "Untitled Program"


class ProgramParseError(Exception):
    """Raised when an upload yields no usable program."""


def derive_program_name(display_name: Optional[str]) -> str:
    """'Powerbuilding_Phase_2.xlsx' -> 'Powerbuilding Phase 2'"""
    name = _EXTENSION_RE.sub("", (display_name or "").strip())
    name = name.replace("_", " ").strip()
    return name or DEFAULT_PROGRAM_NAME


class ProgramParser:
    """Turns workbook bytes into a ParsedProgram, one extraction per sheet."""

    def __init__(
        self,
        extractor: SheetExtractor,
        max_sheet_rows: Optional[int] = None,
        fail_fast: Optional[bool] = None,
    ):
        """
        Args:
            extractor: Sheet extractor holding the language model client
            max_sheet_rows: Rows per sheet sent to the model (default MAX_SHEET_ROWS)
            fail_fast: Abort the upload on the first failed sheet instead of
                skipping it (default: not PARTIAL_PROGRAMS_ALLOWED)
        """
        self.extractor = extractor
        self.max_sheet_rows = max_sheet_rows or settings.MAX_SHEET_ROWS
        self.fail_fast = (not settings.PARTIAL_PROGRAMS_ALLOWED) if fail_fast is None else fail_fast

    async def _parse_sheet(self, sheet: SheetPayload) -> ParsedPhase:
        raw_phase = await self.extractor.extract(sheet.name, sheet.copy_rows(), sheet.position)
        phase = assemble_phase(raw_phase, sheet.name, sheet.position)
        logger.info(
            f"Sheet '{sheet.name}' parsed into {len(phase.workout_days)} workout days"
        )
        return phase

    async def parse(
        self,
        content: bytes,
        display_name: str,
        filename: Optional[str] = None,
    ) -> ParsedProgram:
        """
        Parse an uploaded workbook.

        Args:
            content: Raw workbook bytes
            display_name: Name the program is derived from
            filename: Original filename, used to detect the file format
                (defaults to display_name)

        Returns:
            ParsedProgram with phases in sheet order

        Raises:
            WorkbookReadError: If the file cannot be read
            ProgramParseError: If no sheet could be parsed, or any sheet
                failed while fail_fast is set
        """
        program_name = derive_program_name(display_name)
        sheets = read_workbook(content, filename or display_name, max_rows=self.max_sheet_rows)
        if not sheets:
            raise ProgramParseError("Workbook contains no sheets")

        logger.info(f"Parsing program '{program_name}' from {len(sheets)} sheets")

        # gather keeps results in submission order, i.e. sheet order
        results = await asyncio.gather(
            *(self._parse_sheet(sheet) for sheet in sheets),
            return_exceptions=True,
        )

        phases: List[ParsedPhase] = []
        failures: List[SheetFailure] = []
        first_error: Optional[Exception] = None

        for sheet, result in zip(sheets, results):
            if isinstance(result, ParsedPhase):
                phases.append(result)
                continue
            if not isinstance(result, Exception):
                raise result
            logger.error(f"Sheet '{sheet.name}' failed: {result}")
            failures.append(
                SheetFailure(sheet_name=sheet.name, sheet_position=sheet.position, error=str(result))
            )
            if first_error is None:
                first_error = result

        if first_error is not None and (self.fail_fast or not phases):
            if phases:
                message = f"Failed to parse sheet '{failures[0].sheet_name}': {first_error}"
            else:
                message = f"Failed to parse every sheet of '{program_name}': {first_error}"
            raise ProgramParseError(message) from first_error

        # Skipped sheets leave no gaps: phases are numbered 1..K in sheet order
        phases = [
            phase.model_copy(update={"phase_number": number})
            for number, phase in enumerate(phases, 1)
        ]

        if failures:
            logger.warning(
                f"Program '{program_name}' parsed with {len(failures)} of {len(sheets)} sheets skipped"
            )

        return ParsedProgram(
            program_name=program_name,
            phases=phases,
            skipped_sheets=failures,
        )
