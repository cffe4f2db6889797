"""Admin reporting endpoints: attendance statistics and backup export."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from fitnext.app.core.access_policy import Action
from fitnext.app.db.session import get_db
from fitnext.app.dependencies.auth import AuthContext, require_action
from fitnext.app.schemas.booking import AttendanceStat
from fitnext.app.services import reporting

router = APIRouter(tags=["reports"])


@router.get("/stats/attendance", response_model=list[AttendanceStat])
def attendance_stats(
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    session_type_id: List[int] = Query(default=[]),
    db: Session = Depends(get_db),
    ctx: AuthContext = Depends(require_action(Action.VIEW_STATS)),
):
    return reporting.attendance_stats(db, date_from, date_to, session_type_id)


@router.get("/backup")
def export_backup(db: Session = Depends(get_db), ctx: AuthContext = Depends(require_action(Action.EXPORT_BACKUP))):
    return reporting.export_backup(db)
