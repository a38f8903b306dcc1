"""PeekNextNumber Use Case

Reports the number the next issuance would most likely receive.
"""

from libs.result import Result, Return, Error
from src.app.repositories.sequence_repository import SequenceRepository
from .dtos import NextNumberResponseDTO
from .errors import ErrorCode


class PeekNextNumber:
    """
    Use Case: Read the next invoice number without reserving it

    The value is advisory: a concurrent issuance may take it first.
    """

    def __init__(self, sequence_repo: SequenceRepository):
        self.sequence_repo = sequence_repo

    async def execute(self) -> Result[NextNumberResponseDTO]:
        try:
            next_number = await self.sequence_repo.peek_next()
        except Exception as e:
            return Return.err(
                Error(
                    code=ErrorCode.STORAGE_ERROR.value,
                    message="Could not read the invoice sequence",
                    reason=str(e),
                )
            )

        return Return.ok(NextNumberResponseDTO(next_invoice_number=next_number))
