import io
from datetime import date, timedelta

import pytest
from openpyxl import Workbook
from sqlalchemy import func, select

from db import AcademicYear, AssignmentMentee, Project, ProjectAssignment, User
from db import store as store_module
from db.store import Store, StoreError
from import_engine import ImportParseError, ImportRun, run_import, validate
from import_engine.file_parser import parse_file


def _count(session, model):
    return session.scalar(select(func.count()).select_from(model))


def test_import_creates_people_projects_and_links(db_session, projects_csv):
    report = run_import(projects_csv, "projects.csv", coordinator_id="coord-1",
                        session=db_session)

    assert report.total_rows == 2
    assert report.valid_rows == 2
    assert report.success == 2
    assert report.failed == 0
    assert report.errors == []
    assert report.precreated_users == 2
    assert len(report.created_projects) == 2
    assert len(report.assigned_mentees) == 1

    mentor = db_session.scalars(select(User).where(User.email == "rao@uni.edu")).one()
    mentee = db_session.scalars(select(User).where(User.email == "asha@uni.edu")).one()
    assert mentor.role == "mentor" and mentor.name == "Dr. Rao"
    assert mentee.role == "mentee" and mentee.password_hash is None

    tutor = db_session.scalars(select(Project).where(Project.name == "AI Tutor")).one()
    assert tutor.mentor_id == mentor.id
    assert tutor.mentees == [mentee.id]
    assert tutor.duration_months == 12
    assert tutor.assigned_by == "coord-1"
    assert tutor.status == "pending"

    assert _count(db_session, ProjectAssignment) == 2
    assert _count(db_session, AssignmentMentee) == 1


def test_missing_mentee_gives_project_and_one_warning(db_session, projects_csv):
    report = run_import(projects_csv, "projects.csv", session=db_session)

    robotics = db_session.scalars(select(Project).where(Project.name == "Robotics")).one()
    assert robotics.mentees == []
    assert report.warnings == [
        "Row 2: No Mentee Email provided. Project will be imported without a mentee.",
    ]
    assert not any(e.startswith("Row 2") for e in report.errors)


def test_reimport_inserts_again(db_session, projects_csv):
    run_import(projects_csv, "projects.csv", session=db_session)
    second = run_import(projects_csv, "projects.csv", session=db_session)

    assert second.success == 2
    assert second.precreated_users == 0
    assert _count(db_session, Project) == 4
    assert _count(db_session, User) == 2


def test_dedupe_skips_existing_projects(db_session, projects_csv):
    run_import(projects_csv, "projects.csv", session=db_session)
    second = run_import(projects_csv, "projects.csv", dedupe=True, session=db_session)

    assert second.success == 0
    assert second.skipped_duplicates == 2
    assert not second.ok
    assert _count(db_session, Project) == 2


def test_invalid_rows_are_reported_and_the_rest_imported(db_session):
    csv_text = (
        "Project Name,Mentor Name,Mentor Email,Mentee Email\n"
        ",Dr. X,x@uni.edu,\n"
        "Vision,Dr. Y,bad-email,\n"
        "Compilers,Dr. Z,z@uni.edu,stu@uni.edu\n"
    )
    report = run_import(csv_text, "p.csv", session=db_session)

    assert report.total_rows == 3
    assert report.valid_rows == 1
    assert report.success == 1
    assert report.errors == [
        "Row 1: Project Name is required",
        "Row 2: Invalid Mentor Email format",
    ]


def test_progress_is_ordered_and_reaches_100(db_session, projects_csv):
    ticks = []
    run_import(projects_csv, "projects.csv", on_progress=ticks.append, session=db_session)

    assert [t.row_number for t in ticks] == [1, 2]
    assert [t.percent for t in ticks] == [50.0, 100.0]
    assert all(t.ok for t in ticks)


def test_precreate_failure_falls_back_to_row_lookups(db_session, projects_csv, monkeypatch):
    def boom(session, payload):
        raise RuntimeError("service unavailable")

    monkeypatch.setitem(store_module._FUNCTIONS, "bulk-create-users", boom)
    report = run_import(projects_csv, "projects.csv", session=db_session)

    assert report.success == 2
    assert report.precreated_users == 0
    assert any(w.startswith("Precreate: ") and "service unavailable" in w
               for w in report.warnings)
    assert [m["email"] for m in report.created_mentors] == ["rao@uni.edu"]
    assert [m["email"] for m in report.created_mentees] == ["asha@uni.edu"]


def test_assignment_failure_is_a_warning(db_session, projects_csv, monkeypatch):
    original = Store.insert

    def flaky(self, table, values):
        if table == "project_assignments":
            raise StoreError("insert into project_assignments failed: boom")
        return original(self, table, values)

    monkeypatch.setattr(Store, "insert", flaky)
    report = run_import(projects_csv, "projects.csv", session=db_session)

    assert report.success == 2
    assert "Row 1: Assignment record creation failed." in report.warnings
    assert report.assigned_mentees == []
    assert _count(db_session, Project) == 2
    assert _count(db_session, ProjectAssignment) == 0


def test_project_failure_fails_only_that_row(db_session, projects_csv, monkeypatch):
    original = Store.insert

    def flaky(self, table, values):
        if table == "projects" and values["name"] == "AI Tutor":
            raise StoreError("insert into projects failed: boom")
        return original(self, table, values)

    monkeypatch.setattr(Store, "insert", flaky)
    report = run_import(projects_csv, "projects.csv", session=db_session)

    assert report.success == 1
    assert report.failed == 1
    assert report.errors == ["Row 1: Failed to create project: insert into projects failed: boom"]
    assert [p["name"] for p in report.created_projects] == ["Robotics"]


def test_mentor_create_failure_keeps_project_without_mentor(db_session, monkeypatch):
    monkeypatch.setitem(store_module._FUNCTIONS, "bulk-create-users",
                        lambda session, payload: {"map": {}})
    original = Store.insert

    def flaky(self, table, values):
        if table == "users":
            raise StoreError("insert into users failed: denied")
        return original(self, table, values)

    monkeypatch.setattr(Store, "insert", flaky)
    csv_text = "Project Name,Mentor Name,Mentor Email\nSolo,Dr. Q,q@uni.edu\n"
    report = run_import(csv_text, "p.csv", session=db_session)

    assert report.success == 1
    assert ("Row 1: Mentor not found and could not be created. "
            "Proceeding without mentor_id.") in report.warnings
    project = db_session.scalars(select(Project)).one()
    assert project.mentor_id is None
    assert project.mentor_email == "q@uni.edu"


def test_imported_project_is_tagged_with_overlapping_years(db_session, projects_csv):
    today = date.today()
    db_session.add(AcademicYear(name="2000-2001", start_date=date(2000, 7, 1),
                                end_date=date(2001, 6, 30)))
    db_session.add(AcademicYear(name="current", start_date=today - timedelta(days=30),
                                end_date=today + timedelta(days=30)))
    db_session.flush()

    report = run_import(projects_csv, "projects.csv", session=db_session)
    assert [p["visible_sessions"] for p in report.created_projects] == [["current"], ["current"]]


def test_xlsx_import(db_session):
    wb = Workbook()
    ws = wb.active
    ws.append(["project_name", "MENTOR NAME", "Mentor-Email", "Mentee Email", "Duration"])
    ws.append(["Sheets", "Dr. S", "s@uni.edu", "kid@uni.edu", 3])
    buf = io.BytesIO()
    wb.save(buf)

    report = run_import(buf.getvalue(), "projects.xlsx", session=db_session)

    assert report.success == 1
    project = db_session.scalars(select(Project)).one()
    assert project.duration_months == 18
    assert project.mentor_email == "s@uni.edu"


def test_parse_error_aborts_before_any_write(db_session):
    with pytest.raises(ImportParseError):
        run_import(b"\x00garbage", "projects.xlsx", session=db_session)
    assert _count(db_session, Project) == 0


def test_import_run_is_a_lazy_generator(db_session, projects_csv):
    valid = validate(parse_file(projects_csv, "projects.csv")).valid_rows
    run = ImportRun(Store(db_session))
    rows = run.rows(valid)

    first = next(rows)
    assert first.row_number == 1
    assert run.report.success == 1
    assert _count(db_session, Project) == 1

    list(rows)
    assert run.report.success == 2


def test_owned_session_commits(app, projects_csv):
    from db import get_session

    report = run_import(projects_csv, "projects.csv")
    assert report.success == 2

    session = get_session()
    try:
        assert _count(session, Project) == 2
    finally:
        session.close()


SAM_AS_MENTOR_CSV = "Project Name,Mentor Name,Mentor Email\nSignal Lab,Sam,sam@uni.edu\n"


def _existing_mentee(session):
    session.add(User(email="sam@uni.edu", name="Sam", role="mentee", roles=["mentee"]))
    session.flush()


def test_existing_account_gets_the_imported_role(db_session):
    _existing_mentee(db_session)
    report = run_import(SAM_AS_MENTOR_CSV, "p.csv", session=db_session)

    assert report.success == 1
    sam = db_session.scalars(select(User).where(User.email == "sam@uni.edu")).one()
    assert sam.role == "mentee"
    assert sam.all_roles() == ["mentee", "mentor"]
    assert db_session.scalars(select(Project)).one().mentor_id == sam.id


def test_row_lookup_grants_role_when_precreate_is_unavailable(db_session, monkeypatch):
    _existing_mentee(db_session)
    monkeypatch.setitem(store_module._FUNCTIONS, "bulk-create-users",
                        lambda session, payload: {"map": {}})

    report = run_import(SAM_AS_MENTOR_CSV, "p.csv", session=db_session)

    assert report.success == 1
    assert report.created_mentors == []
    sam = db_session.scalars(select(User).where(User.email == "sam@uni.edu")).one()
    assert "mentor" in sam.all_roles()


def test_role_grant_failure_is_a_warning(db_session, monkeypatch):
    _existing_mentee(db_session)
    monkeypatch.setitem(store_module._FUNCTIONS, "bulk-create-users",
                        lambda session, payload: {"map": {}})

    def refuse(self, table, values, *, eq):
        raise StoreError("update users failed: denied")

    monkeypatch.setattr(Store, "update", refuse)
    report = run_import(SAM_AS_MENTOR_CSV, "p.csv", session=db_session)

    assert report.success == 1
    assert "Row 1: Could not grant the mentor role to sam@uni.edu." in report.warnings
