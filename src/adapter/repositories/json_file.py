"""JSON file repositories

Stores the sequence and the invoice records as two JSON documents:

    {DATA_DIR}/sequence.json   {"last_issued_number": 41}
    {DATA_DIR}/invoices.json   {"invoices": [...]}

Writes go to a temporary file in the same directory which is fsynced and
then moved over the target with os.replace, so a reader only ever sees the
previous or the new document. A missing file is an empty store; a file that
exists but cannot be parsed raises CorruptedStoreError and is left untouched.
"""

import asyncio
import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.sequence_repository import SequenceRepository
from src.domain.exceptions import CorruptedStoreError, DuplicateInvoiceNumberError, StorageError
from src.domain.invoice import Invoice, ensure_mutable, invoice_from_dict, invoice_to_dict
from src.domain.invoice_stats import InvoiceStats

logger = logging.getLogger(__name__)

SEQUENCE_FILE_NAME = "sequence.json"
INVOICES_FILE_NAME = "invoices.json"


def read_document(path: str) -> Optional[Any]:
    """Load a JSON document. Returns None if the file does not exist."""
    try:
        with open(path, "r", encoding="utf-8") as r_file:
            return json.load(r_file)
    except FileNotFoundError:
        return None
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorruptedStoreError(path, str(e)) from e
    except OSError as e:
        raise StorageError(f"Could not read {path}: {e}") from e


def write_document(path: str, document: Any) -> None:
    """Atomically replace path with the JSON encoding of document"""
    directory = os.path.dirname(os.path.abspath(path))
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as w_file:
            json.dump(document, w_file, indent=2, ensure_ascii=False)
            w_file.flush()
            os.fsync(w_file.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise StorageError(f"Could not write {path}: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)


class JsonFileSequenceRepository(SequenceRepository):
    """
    Sequence kept in a JSON file

    The file is the only source of truth: every call re-reads it, so a failed
    write leaves the previously persisted value in effect.
    """

    def __init__(self, path: str, starting_number: int = 1):
        self.path = path
        self.starting_number = starting_number
        self._lock = asyncio.Lock()

    def _read_last(self) -> int:
        document = read_document(self.path)
        if document is None:
            return self.starting_number - 1

        value = document.get("last_issued_number") if isinstance(document, dict) else None
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise CorruptedStoreError(self.path, "last_issued_number must be a non-negative integer")
        return value

    def _write_last(self, value: int) -> None:
        write_document(self.path, {"last_issued_number": value})

    async def reserve_next(self) -> int:
        async with self._lock:
            last = await asyncio.to_thread(self._read_last)
            value = last + 1
            await asyncio.to_thread(self._write_last, value)
            logger.info(f"Reserved invoice number {value}")
            return value

    async def peek_next(self) -> int:
        last = await asyncio.to_thread(self._read_last)
        return last + 1

    async def release(self, invoice_number: int) -> bool:
        async with self._lock:
            last = await asyncio.to_thread(self._read_last)
            if last != invoice_number:
                logger.warning(f"Invoice number {invoice_number} not released, stays a gap")
                return False
            await asyncio.to_thread(self._write_last, invoice_number - 1)
            logger.info(f"Released invoice number {invoice_number}")
            return True


class JsonFileInvoiceRepository(InvoiceRepository):
    """
    Invoice records kept in a JSON file

    Each write is a read-modify-write of the whole document under a lock of
    its own, independent from the sequence lock.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()

    def _load(self) -> List[Dict[str, Any]]:
        document = read_document(self.path)
        if document is None:
            return []
        if not isinstance(document, dict) or not isinstance(document.get("invoices"), list):
            raise CorruptedStoreError(self.path, "expected an object with an 'invoices' list")
        return document["invoices"]

    def _store(self, records: List[Dict[str, Any]]) -> None:
        write_document(self.path, {"invoices": records})

    def _decode(self, record: Dict[str, Any]) -> Invoice:
        try:
            return invoice_from_dict(record)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise CorruptedStoreError(self.path, f"malformed invoice record: {e}") from e

    def _index_of(self, records: List[Dict[str, Any]], invoice_number: int) -> Optional[int]:
        for index, record in enumerate(records):
            if record.get("invoice_number") == invoice_number:
                return index
        return None

    async def save(self, invoice: Invoice) -> Invoice:
        async with self._lock:
            records = await asyncio.to_thread(self._load)
            if self._index_of(records, invoice.invoice_number) is not None:
                raise DuplicateInvoiceNumberError(invoice.invoice_number)

            invoice.id = max((r.get("id") or 0 for r in records), default=0) + 1
            for line in invoice.lines:
                line.invoice_id = invoice.id

            record = invoice_to_dict(invoice)
            await asyncio.to_thread(self._store, records + [record])
            return self._decode(record)

    async def get_by_invoice_number(self, invoice_number: int) -> Optional[Invoice]:
        records = await asyncio.to_thread(self._load)
        index = self._index_of(records, invoice_number)
        return self._decode(records[index]) if index is not None else None

    async def list_all(self) -> List[Invoice]:
        records = await asyncio.to_thread(self._load)
        invoices = [self._decode(record) for record in records]
        return sorted(invoices, key=lambda invoice: invoice.invoice_number, reverse=True)

    async def update(self, invoice_number: int, fields: Dict[str, Any]) -> Optional[Invoice]:
        ensure_mutable(fields)

        async with self._lock:
            records = await asyncio.to_thread(self._load)
            index = self._index_of(records, invoice_number)
            if index is None:
                return None

            invoice = self._decode(records[index])
            if "is_paid" in fields:
                invoice.mark_paid(bool(fields["is_paid"]))
            records[index] = invoice_to_dict(invoice)
            await asyncio.to_thread(self._store, records)
            return invoice

    async def delete(self, invoice_number: int) -> bool:
        async with self._lock:
            records = await asyncio.to_thread(self._load)
            index = self._index_of(records, invoice_number)
            if index is None:
                return False

            del records[index]
            await asyncio.to_thread(self._store, records)
            logger.info(f"Deleted invoice #{invoice_number}")
            return True

    async def stats(self) -> InvoiceStats:
        return InvoiceStats.from_invoices(await self.list_all())
