from __future__ import annotations

from datetime import datetime, timezone

from taskboard.domain.errors import ValidationError
from taskboard.domain.task import Note, Task, TaskId, UserId
from taskboard.domain.user import User


### COMMENTS
# ==========================================================
# Kodeki rekordów (repositories/records.py).
# ==========================================================
# - Encja <-> zwykły słownik zapisywany w magazynie (klucze camelCase).
# - Daty: ISO8601 w UTC z sufiksem 'Z'; brak daty -> None.
# - Enumy zapisujemy jako ich wartości tekstowe.
# - Odczyt uszkodzonego rekordu -> ValidationError("record", ...).


def encode_dt(dt: datetime | None) -> str | None:
    # ISO 8601 w UTC z sufiksem 'Z'
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_utc_z(s: str | None) -> datetime | None:
    """Parsuje datę ISO8601 ('...Z' albo z offsetem) do aware UTC."""
    if s is None:
        return None
    if not isinstance(s, str):
        raise ValueError(f"expected ISO8601 string, got {type(s).__name__}")
    return datetime.fromisoformat(s.replace("Z", "+00:00")).astimezone(timezone.utc)


def encode_task(task: Task) -> dict:
    return {
        "id": str(task.id),
        "title": task.title,
        "description": task.description,
        "userId": str(task.user_id),
        "assignedTo": str(task.assigned_to),
        "priority": task.priority.value,
        "category": task.category,
        "tags": list(task.tags),
        "completed": task.completed,
        "status": task.status.value,
        "dueDate": encode_dt(task.due_date),
        "estimatedHours": task.estimated_hours,
        "actualHours": task.actual_hours,
        "notes": [
            {"id": n.id, "content": n.content, "author": n.author, "createdAt": encode_dt(n.created_at)}
            for n in task.notes
        ],
        "attachments": [dict(a) for a in task.attachments],
        "dependencies": [str(d) for d in task.dependencies],
        "createdAt": encode_dt(task.created_at),
        "updatedAt": encode_dt(task.updated_at),
        "completedAt": encode_dt(task.completed_at),
    }


def decode_task(row: dict) -> Task:
    try:
        return Task(
            id=TaskId(row["id"]),
            title=row["title"],
            description=row.get("description") or "",
            user_id=UserId(row["userId"]),
            assigned_to=row.get("assignedTo"),
            priority=row.get("priority", "medium"),
            category=row.get("category") or "general",
            tags=row.get("tags") or [],
            completed=bool(row.get("completed", False)),
            status=row.get("status", "pending"),
            due_date=parse_utc_z(row.get("dueDate")),
            estimated_hours=row.get("estimatedHours"),
            actual_hours=row.get("actualHours"),
            notes=[
                Note(
                    id=n["id"],
                    content=n["content"],
                    author=n.get("author"),
                    created_at=parse_utc_z(n["createdAt"]),
                )
                for n in row.get("notes") or []
            ],
            attachments=row.get("attachments") or [],
            dependencies=row.get("dependencies") or [],
            created_at=parse_utc_z(row["createdAt"]),
            updated_at=parse_utc_z(row.get("updatedAt")),
            completed_at=parse_utc_z(row.get("completedAt")),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise ValidationError("record", f"task {row.get('id')!r}: {e}")


def encode_user(user: User) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "displayName": user.display_name,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": user.role.value,
        "isActive": user.is_active,
        "isVerified": user.is_verified,
        "createdAt": encode_dt(user.created_at),
        "updatedAt": encode_dt(user.updated_at),
        "lastLoginAt": encode_dt(user.last_login_at),
        "lastActiveAt": encode_dt(user.last_active_at),
        "loginCount": user.login_count,
    }


def decode_user(row: dict) -> User:
    try:
        return User(
            id=UserId(row["id"]),
            username=row["username"],
            email=row["email"],
            display_name=row.get("displayName") or "",
            first_name=row.get("firstName") or "",
            last_name=row.get("lastName") or "",
            role=row.get("role", "user"),
            is_active=row.get("isActive", True),
            is_verified=row.get("isVerified", False),
            created_at=parse_utc_z(row["createdAt"]),
            updated_at=parse_utc_z(row.get("updatedAt")),
            last_login_at=parse_utc_z(row.get("lastLoginAt")),
            last_active_at=parse_utc_z(row.get("lastActiveAt")),
            login_count=int(row.get("loginCount") or 0),
        )
    except (KeyError, ValueError, TypeError) as e:
        raise ValidationError("record", f"user {row.get('id')!r}: {e}")
