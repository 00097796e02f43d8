"""
import_engine.reconciler - Get-or-create mentor/mentee accounts by email.

One UserReconciler lives for exactly one import run.  It keeps two
caches (mentors, mentees) keyed by lowercased email so a person named on
many rows is looked up once.  A pre-pass hands every distinct email to
the ``bulk-create-users`` store function; whatever it returns seeds the
caches and the per-row path only handles what is left.
"""

from __future__ import annotations

import logging

from db.store import Store, StoreError
from import_engine.report import ImportReport
from import_engine.row_processor import RowError
from import_engine.validator import NormalizedRow, local_part

logger = logging.getLogger(__name__)

BULK_CREATE_FUNCTION = "bulk-create-users"


def _profile(data: dict) -> dict:
    return {"id": data.get("id"), "name": data.get("name") or "", "email": data.get("email") or ""}


class UserReconciler:

    def __init__(self, store: Store, report: ImportReport):
        self.store = store
        self.report = report
        self._mentors: dict[str, dict] = {}
        self._mentees: dict[str, dict] = {}

    def reset(self) -> None:
        """Forget cached profiles (after a rollback they may no longer exist)."""
        self._mentors.clear()
        self._mentees.clear()

    # ── Pre-pass ───────────────────────────────────────────────────────

    def precreate(self, rows: list[NormalizedRow]) -> None:
        """
        Bulk get-or-create every mentor/mentee email in *rows*.
        Never raises: failures are recorded as warnings and the per-row
        lookups act as fallback.
        """
        payload: dict[tuple[str, str], dict] = {}
        for r in rows:
            if r.mentor_email:
                payload.setdefault(("mentor", r.mentor_email), {
                    "email": r.mentor_email,
                    "name": r.mentor_name or local_part(r.mentor_email),
                    "role": "mentor",
                })
            if r.mentee_email:
                payload.setdefault(("mentee", r.mentee_email), {
                    "email": r.mentee_email,
                    "name": r.mentee_name or local_part(r.mentee_email),
                    "role": "mentee",
                })
        if not payload:
            return

        try:
            data = self.store.invoke(BULK_CREATE_FUNCTION, {"users": list(payload.values())})
        except StoreError as exc:
            logger.warning("Bulk pre-create failed: %s", exc)
            self.report.warnings.append(f"Precreate: {exc}")
            return

        for email, prof in (data.get("map") or {}).items():
            email = email.lower()
            if ("mentor", email) in payload:
                self._mentors[email] = _profile(prof)
            if ("mentee", email) in payload:
                self._mentees[email] = _profile(prof)

        created = data.get("created") or []
        self.report.precreated_users += len(created)
        for msg in data.get("errors") or []:
            self.report.warnings.append(f"Precreate: {msg}")
        logger.info("Pre-created %d users, %d already existed",
                    len(created), len(data.get("existing") or []))

    # ── Per-row ────────────────────────────────────────────────────────

    def resolve_mentor(self, row: NormalizedRow) -> dict | None:
        return self._resolve(
            self._mentors, row.mentor_email, row.mentor_name, "mentor", row.row_number,
            self.report.created_mentors,
            "Mentor not found and could not be created. Proceeding without mentor_id.",
        )

    def resolve_mentee(self, row: NormalizedRow) -> dict | None:
        if not row.has_mentee:
            return None
        return self._resolve(
            self._mentees, row.mentee_email, row.mentee_name, "mentee", row.row_number,
            self.report.created_mentees,
            "Mentee not found and could not be created. Imported project without mentee.",
        )

    def _resolve(
        self,
        cache: dict[str, dict],
        email: str,
        name: str,
        role: str,
        row_number: int,
        created: list[dict],
        failure_warning: str,
    ) -> dict | None:
        email = email.strip().lower()
        if email in cache:
            return cache[email]

        try:
            found = self.store.select_one("users", eq={"email": email})
        except StoreError as exc:
            raise RowError(f"Failed to lookup {role}: {exc}") from exc

        if found:
            profile = _profile(found)
            self._grant_role(found, role, row_number)
        else:
            try:
                new_user = self.store.insert("users", {
                    "email": email,
                    "name": name or local_part(email),
                    "role": role,
                    "roles": [role],
                })
            except StoreError as exc:
                logger.warning("Row %d: could not create %s %s: %s", row_number, role, email, exc)
                self.report.add_warning(row_number, failure_warning)
                return None
            profile = _profile(new_user)
            created.append(profile)

        cache[email] = profile
        return profile

    def _grant_role(self, user: dict, role: str, row_number: int) -> None:
        """An existing account named as mentor/mentee must be able to act as one."""
        roles = list(user.get("roles") or [])
        if role in roles:
            return
        try:
            self.store.update("users", {"roles": roles + [role]}, eq={"id": user["id"]})
        except StoreError as exc:
            logger.warning("Row %d: could not grant %s to %s: %s",
                           row_number, role, user.get("email"), exc)
            self.report.add_warning(
                row_number, f"Could not grant the {role} role to {user.get('email')}.")
            return
        logger.info("Granted %s role to existing account %s", role, user.get("email"))
