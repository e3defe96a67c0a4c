"""
CSV export of a user's tracked applications (one flat row per record).
"""
import csv
import io
from typing import Iterable

from ..models.db.application import Application

# Column order for the output CSV
COLUMNS = [
    "Company",
    "Job Title",
    "Location",
    "Status",
    "Source",
    "Date Applied",
    "URL",
    "Notes",
    "Created At",
    "Updated At",
]


def application_to_row(app: Application) -> dict:
    return {
        "Company": app.company_name,
        "Job Title": app.job_title,
        "Location": app.location,
        "Status": app.status,
        "Source": app.source,
        "Date Applied": app.date_applied.date().isoformat() if app.date_applied else "",
        "URL": app.url,
        "Notes": app.notes,
        "Created At": app.created_at.isoformat() if app.created_at else "",
        "Updated At": app.updated_at.isoformat() if app.updated_at else "",
    }


def applications_to_csv(applications: Iterable[Application]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=COLUMNS)
    writer.writeheader()
    for app in applications:
        writer.writerow(application_to_row(app))
    return buffer.getvalue()
