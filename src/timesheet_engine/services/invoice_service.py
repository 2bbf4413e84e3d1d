"""Worker invoice service - submission, admin edits and payment status."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.calculators.aggregator import aggregate
from timesheet_engine.calculators.totals import compute_totals, quantize_money, sum_totals
from timesheet_engine.calculators.types import TimeEntryRecord, to_decimal, validate_hours
from timesheet_engine.calculators.week_resolver import (
    SUNDAY,
    day_index_mon_sat,
    parse_date,
    resolve_week,
    start_of_iso_week,
    week_range_label,
    window_from,
)
from timesheet_engine.config import Settings, get_settings
from timesheet_engine.errors import (
    DuplicateInvoiceError,
    NotFoundError,
    NotificationFailureError,
    ValidationFailedError,
)
from timesheet_engine.exports import invoices_to_csv
from timesheet_engine.models import Contractor, DocketEntry, WorkerInvoice
from timesheet_engine.providers.base import (
    EmailAttachment,
    EmailMessageSpec,
    InvoiceData,
    InvoiceEntryLine,
    InvoiceRenderer,
    Notifier,
)
from timesheet_engine.providers.storage import PdfStorage, pdf_filename
from timesheet_engine.providers.templates import (
    invoice_email_html,
    invoice_email_subject,
    invoice_email_text,
)
from timesheet_engine.services.authorization import (
    Permission,
    Principal,
    Role,
    invoice_filter,
    require_permission,
)
from timesheet_engine.services.contractors import find_contractor_for_user
from timesheet_engine.services.entries import load_time_entries
from timesheet_engine.services.pagination import Page, check_page, count_rows, page_slice
from timesheet_engine.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
)

logger = logging.getLogger(__name__)

MAX_AUDIT_NOTE_LENGTH = 1000
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def append_audit_note(
    existing: str | None, actor: str, text: str, at: datetime
) -> str:
    """Append ``[timestamp] actor: text`` to the audit log."""
    line = f"[{at.isoformat(timespec='seconds')}] {actor}: {text}"
    return f"{existing}\n{line}" if existing else line


def _clean_note(note: str | None, required: bool) -> str | None:
    if note is None or not note.strip():
        if required:
            raise ValidationFailedError(
                "Audit note is required", code="AUDIT_NOTE_REQUIRED"
            )
        return None
    note = note.strip()
    if len(note) > MAX_AUDIT_NOTE_LENGTH:
        raise ValidationFailedError(
            f"Audit note must be at most {MAX_AUDIT_NOTE_LENGTH} characters",
            code="AUDIT_NOTE_TOO_LONG",
        )
    return note


@dataclass
class InvoiceListItem:
    """An invoice with the contractor fields shown in admin lists."""

    invoice: WorkerInvoice
    nickname: str
    full_name: str | None
    email: str | None

    @property
    def week_label(self) -> str:
        return week_range_label(self.invoice.week_start, self.invoice.week_end)


class InvoiceService:
    """Service for the worker invoice lifecycle.

    Operations:
    - submit_week: worker submits a week (DRAFT → SUBMITTED), renders the PDF
      and notifies the director
    - update_invoice: admin edits the frozen hours/rate/amount with a note
    - update_status: admin marks paid (SUBMITTED → PAID) or undoes it
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Notifier | None = None,
        renderer: InvoiceRenderer | None = None,
        storage: PdfStorage | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.notifier = notifier
        self.renderer = renderer
        self.storage = storage
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Worker submission
    # ------------------------------------------------------------------

    async def submit_week(
        self, principal: Principal, week_start: str | date
    ) -> WorkerInvoice:
        """Submit the worker's invoice for the ISO week containing ``week_start``.

        The invoice row is inserted optimistically; the unique constraint on
        (contractor, week) rejects a concurrent or repeated submission. The
        transaction is committed only after the director email is accepted.
        If the email fails, the insert is rolled back and the stored PDF is
        removed so the worker can resubmit.
        """
        require_permission(
            principal, Permission.INVOICES_SUBMIT, message="Only workers can submit invoices"
        )
        if self.notifier is None:
            raise RuntimeError("InvoiceService.submit_week requires a notifier")

        contractor = await find_contractor_for_user(self.session, principal)
        contractor_id = contractor.contractor_id
        window = window_from(start_of_iso_week(parse_date(week_start)))

        records = await load_time_entries(
            self.session,
            window,
            DocketEntry.contractor_id == contractor_id,
        )
        rate = to_decimal(contractor.hourly_rate)
        include_sunday = self.settings.bill_sunday_hours
        totals = sum_totals(
            compute_totals(row, rate, include_sunday=include_sunday)
            for row in aggregate(records)
        )
        if totals.hours <= 0:
            raise ValidationFailedError(
                "No timesheet data found for this week", code="NO_TIMESHEET_DATA"
            )

        InvoiceStateMachine.validate_transition(InvoiceStatus.DRAFT, InvoiceStatus.SUBMITTED)
        submitted_at = datetime.now(timezone.utc)
        invoice = WorkerInvoice(
            invoice_id=uuid4(),
            contractor_id=contractor_id,
            week_start=window.start_date,
            week_end=window.last_day,
            total_hours=quantize_money(totals.hours),
            hourly_rate=quantize_money(rate),
            total_amount=quantize_money(totals.amount),
            status=InvoiceStatus.SUBMITTED.value,
            submitted_at=submitted_at,
        )
        self.session.add(invoice)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateInvoiceError(contractor_id, window.start_date) from exc

        billable = [
            r for r in records
            if include_sunday or day_index_mon_sat(r.work_date) != SUNDAY
        ]
        data = self._invoice_data(invoice, contractor, billable, window.label)

        pdf_bytes = await self._render_pdf(data)
        if pdf_bytes is not None and self.storage is not None:
            try:
                invoice.pdf_url = await asyncio.to_thread(
                    self.storage.save,
                    invoice.invoice_id,
                    data.contractor_name,
                    pdf_bytes,
                    submitted_at.date(),
                )
            except OSError:
                logger.exception("Could not store PDF for invoice %s", invoice.invoice_id)

        message = self._director_email(data, pdf_bytes, submitted_at.date())
        try:
            result = await asyncio.to_thread(self.notifier.send, message)
            error = None if result.success else (result.error or "delivery rejected")
        except Exception as exc:
            logger.exception("Notifier %s raised", getattr(self.notifier, "name", "?"))
            error = str(exc) or exc.__class__.__name__

        if error is not None:
            await self._revert_submission(invoice)
            raise NotificationFailureError(error)

        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self._revert_submission(invoice)
            raise DuplicateInvoiceError(contractor_id, window.start_date) from exc

        logger.info(
            "Invoice %s submitted by contractor %s for week %s: %s hours, %s",
            invoice.invoice_id,
            contractor_id,
            window.iso_label,
            invoice.total_hours,
            invoice.total_amount,
        )
        return invoice

    async def _revert_submission(self, invoice: WorkerInvoice) -> None:
        pdf_url = invoice.pdf_url
        contractor_id, week_start = invoice.contractor_id, invoice.week_start
        await self.session.rollback()
        if pdf_url and self.storage is not None:
            await asyncio.to_thread(self.storage.delete, pdf_url)
        logger.warning(
            "Invoice submission for contractor %s week %s reverted",
            contractor_id,
            week_start,
        )

    async def _render_pdf(self, data: InvoiceData) -> bytes | None:
        """Render the invoice PDF; failures only cost the attachment."""
        if self.renderer is None:
            return None
        try:
            return await asyncio.to_thread(self.renderer.render, data)
        except Exception:
            logger.exception("PDF generation failed for invoice %s", data.invoice_id)
            return None

    def _invoice_data(
        self,
        invoice: WorkerInvoice,
        contractor: Contractor,
        records: list[TimeEntryRecord],
        week_label: str,
    ) -> InvoiceData:
        return InvoiceData(
            invoice_id=invoice.invoice_id,
            contractor_name=contractor.display_name,
            contractor_email=contractor.email,
            week_start=invoice.week_start,
            week_end=invoice.week_end,
            week_label=week_label,
            hourly_rate=invoice.hourly_rate,
            total_hours=invoice.total_hours,
            total_amount=invoice.total_amount,
            submitted_at=invoice.submitted_at,
            currency=self.settings.currency,
            entries=tuple(
                InvoiceEntryLine(
                    work_date=r.work_date,
                    builder_name=r.builder_name or "",
                    company_code=r.company_code or "",
                    location_label=r.location_label or "",
                    tonnage_hours=r.tonnage_hours,
                    day_labour_hours=r.day_labour_hours,
                )
                for r in records
            ),
        )

    def _director_email(
        self, data: InvoiceData, pdf_bytes: bytes | None, on: date
    ) -> EmailMessageSpec:
        attached = pdf_bytes is not None
        attachments: tuple[EmailAttachment, ...] = ()
        if attached:
            attachments = (
                EmailAttachment(
                    filename=pdf_filename(data.invoice_id, data.contractor_name, on),
                    content=pdf_bytes,
                ),
            )
        return EmailMessageSpec(
            to=(self.settings.director_email,),
            subject=invoice_email_subject(data.contractor_name, data.week_label),
            text=invoice_email_text(data, pdf_attached=attached),
            html=invoice_email_html(data, pdf_attached=attached),
            sender=self.settings.mail_from,
            attachments=attachments,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_invoice(self, principal: Principal, invoice_id: UUID) -> WorkerInvoice:
        """Load an invoice the principal may see."""
        contractor_id = None
        if principal.role == Role.WORKER:
            contractor = await find_contractor_for_user(self.session, principal, link=False)
            contractor_id = contractor.contractor_id

        invoice = await self.session.scalar(
            select(WorkerInvoice)
            .where(WorkerInvoice.invoice_id == invoice_id)
            .where(invoice_filter(principal, contractor_id))
        )
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    async def list_invoices(
        self,
        principal: Principal,
        week: str | None = None,
        q: str | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[InvoiceListItem]:
        """Admin invoice list, newest week first then by nickname."""
        require_permission(
            principal, Permission.INVOICES_MANAGE, message="Access denied - Admin access only"
        )
        check_page(page, limit, MAX_PAGE_SIZE)

        query = self._list_query(week, q)
        total = await count_rows(self.session, query)
        result = await self.session.execute(page_slice(query, page, limit))
        items = [self._list_item(invoice, contractor) for invoice, contractor in result.all()]
        return Page(items=items, total=total, page=page, limit=limit)

    async def export_invoices_csv(
        self, principal: Principal, week: str, q: str | None = None
    ) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` with every invoice of ``week``."""
        require_permission(
            principal, Permission.INVOICES_MANAGE, message="Access denied - Admin access only"
        )
        window = resolve_week(week)
        result = await self.session.execute(self._list_query(week, q))
        items = [self._list_item(invoice, contractor) for invoice, contractor in result.all()]
        return f"invoices-{window.iso_label}.csv", invoices_to_csv(items)

    def _list_query(self, week: str | None, q: str | None):
        query = select(WorkerInvoice, Contractor).join(
            Contractor, WorkerInvoice.contractor_id == Contractor.contractor_id
        )
        if week:
            query = query.where(WorkerInvoice.week_start == resolve_week(week).start_date)
        if q and q.strip():
            pattern = f"%{q.strip()}%"
            query = query.where(
                or_(
                    Contractor.nickname.ilike(pattern),
                    Contractor.full_name.ilike(pattern),
                    Contractor.email.ilike(pattern),
                )
            )
        return query.order_by(WorkerInvoice.week_start.desc(), Contractor.nickname)

    @staticmethod
    def _list_item(invoice: WorkerInvoice, contractor: Contractor) -> InvoiceListItem:
        return InvoiceListItem(
            invoice=invoice,
            nickname=contractor.nickname,
            full_name=contractor.full_name,
            email=contractor.email,
        )

    # ------------------------------------------------------------------
    # Admin mutations
    # ------------------------------------------------------------------

    async def update_invoice(
        self,
        principal: Principal,
        invoice_id: UUID,
        audit_note: str,
        total_hours: Any = None,
        hourly_rate: Any = None,
        total_amount: Any = None,
    ) -> WorkerInvoice:
        """Edit the frozen snapshot fields of a submitted or paid invoice.

        Values are written as given; nothing is re-derived from live entries.
        """
        require_permission(
            principal, Permission.INVOICES_MANAGE, message="Access denied - Admin access only"
        )
        note = _clean_note(audit_note, required=True)
        invoice = await self.get_invoice(principal, invoice_id)
        if not InvoiceStateMachine.is_snapshot_editable(invoice.status):
            raise InvalidTransitionError(
                invoice.status, invoice.status, "invoice snapshot is not editable"
            )

        changes = []
        if total_hours is not None:
            try:
                hours = validate_hours(total_hours, "total_hours")
            except ValueError as exc:
                raise ValidationFailedError(str(exc)) from exc
            changes.append(f"hours {invoice.total_hours} -> {quantize_money(hours)}")
            invoice.total_hours = quantize_money(hours)
        if hourly_rate is not None:
            rate = self._non_negative(hourly_rate, "hourly_rate")
            changes.append(f"rate {invoice.hourly_rate} -> {rate}")
            invoice.hourly_rate = rate
        if total_amount is not None:
            amount = self._non_negative(total_amount, "total_amount")
            changes.append(f"amount {invoice.total_amount} -> {amount}")
            invoice.total_amount = amount
        if not changes:
            raise ValidationFailedError("Nothing to update", code="NO_CHANGES")

        now = datetime.now(timezone.utc)
        invoice.audit_notes = append_audit_note(
            invoice.audit_notes, principal.display_name, note, now
        )
        await self.session.flush()
        logger.info(
            "Invoice %s edited by %s (%s)",
            invoice.invoice_id,
            principal.user_id,
            "; ".join(changes),
        )
        return invoice

    async def update_status(
        self,
        principal: Principal,
        invoice_id: UUID,
        to_status: str,
        audit_note: str | None = None,
    ) -> WorkerInvoice:
        """Move an invoice between SUBMITTED and PAID.

        Marking paid records ``paid_at``. Undoing a payment clears it and
        requires a note explaining why.
        """
        require_permission(
            principal, Permission.INVOICES_MANAGE, message="Only admins can change invoice status"
        )
        invoice = await self.get_invoice(principal, invoice_id)
        from_status = invoice.status
        InvoiceStateMachine.validate_transition(from_status, to_status)

        is_undo = InvoiceStateMachine.is_undo(from_status, to_status)
        note = _clean_note(audit_note, required=is_undo)
        now = datetime.now(timezone.utc)

        if to_status == InvoiceStatus.PAID:
            invoice.paid_at = now
            text = "Status changed to PAID."
        else:
            invoice.paid_at = None
            text = "Status changed to SUBMITTED (payment undone)."
        if note:
            text = f"{text} {note}"

        invoice.status = InvoiceStatus(to_status).value
        invoice.audit_notes = append_audit_note(
            invoice.audit_notes, principal.display_name, text, now
        )
        await self.session.flush()
        logger.info(
            "Invoice %s %s -> %s by %s",
            invoice.invoice_id,
            from_status,
            invoice.status,
            principal.user_id,
        )
        return invoice

    async def mark_paid(
        self, principal: Principal, invoice_id: UUID, audit_note: str | None = None
    ) -> WorkerInvoice:
        return await self.update_status(principal, invoice_id, InvoiceStatus.PAID, audit_note)

    async def undo_paid(
        self, principal: Principal, invoice_id: UUID, audit_note: str
    ) -> WorkerInvoice:
        return await self.update_status(
            principal, invoice_id, InvoiceStatus.SUBMITTED, audit_note
        )

    @staticmethod
    def _non_negative(value: Any, field_name: str) -> Decimal:
        amount = to_decimal(value)
        if amount < 0:
            raise ValidationFailedError(f"{field_name} must be non-negative")
        return quantize_money(amount)
