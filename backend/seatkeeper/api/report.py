"""
Play time report export for club owners.
Includes:
- Players of a club with total play time
- Chronology of closed and running time records
"""
from __future__ import annotations

import datetime as dt
import io
from typing import Any, cast
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlalchemy.orm import Session as DBSession

from ..core.clock import Clock, format_seconds, whole_seconds
from ..core.deps import get_clock, get_current_user, get_db, require_club_access, require_roles
from ..core.exceptions import NotFound
from ..models.db import Club, Player, PlayerTimeRecord, TableSeat, User

router = APIRouter(prefix="/api/admin", tags=["admin"])

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
RUNNING_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)


def _style_header(ws, row: int, cols: int):
    """Apply header styling to a row."""
    for col in range(1, cols + 1):
        cell = ws.cell(row=row, column=col)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = THIN_BORDER


def _auto_width(ws):
    for column_cells in ws.columns:
        column = column_cells[0].column_letter
        max_length = max((len(str(c.value)) for c in column_cells if c.value is not None), default=0)
        ws.column_dimensions[column].width = max(min(max_length + 4, 60), 12)


def _create_players_sheet(wb: Workbook, players: list[Player], live: dict[int, int]):
    ws = wb.create_sheet("Players")
    headers = ["Player", "Total play time", "Running now", "Last played"]
    ws.append(headers)
    _style_header(ws, 1, len(headers))

    if not players:
        ws.cell(row=2, column=1, value="No players")
        ws.cell(row=2, column=1).font = Font(italic=True)
        return

    for p in players:
        total = int(cast(int, p.total_play_time or 0))
        running = live.get(int(cast(int, p.id)), 0)
        last = cast(Any, p.last_played)
        ws.append([
            cast(str, p.name),
            format_seconds(total + running),
            format_seconds(running) if running else "",
            last.strftime("%Y-%m-%d %H:%M") if last else "",
        ])
        if running:
            ws.cell(row=ws.max_row, column=3).fill = RUNNING_FILL

    _auto_width(ws)


def _create_records_sheet(
    wb: Workbook,
    records: list[PlayerTimeRecord],
    names: dict[int, str],
    positions: dict[int, int],
    now: dt.datetime,
):
    ws = wb.create_sheet("Time records")
    headers = ["Player", "Seat", "Session", "Start", "End", "Duration"]
    ws.append(headers)
    _style_header(ws, 1, len(headers))

    for r in records:
        end = cast(Any, r.end_time)
        start = cast(Any, r.start_time)
        duration = int(cast(int, r.duration)) if end is not None else whole_seconds(start, now)
        ws.append([
            names.get(int(cast(int, r.player_id)), ""),
            positions.get(int(cast(int, r.seat_id)), ""),
            cast(Any, r.session_id) or "",
            start.strftime("%Y-%m-%d %H:%M:%S"),
            end.strftime("%Y-%m-%d %H:%M:%S") if end else "playing",
            format_seconds(duration),
        ])
        if end is None:
            ws.cell(row=ws.max_row, column=5).fill = RUNNING_FILL

    _auto_width(ws)


def build_play_time_workbook(db: DBSession, club_id: int, now: dt.datetime) -> Workbook:
    players = (
        db.query(Player)
        .filter(Player.club_id == club_id)
        .order_by(Player.name.asc(), Player.id.asc())
        .all()
    )
    ids = [int(cast(int, p.id)) for p in players]
    records = (
        db.query(PlayerTimeRecord)
        .filter(PlayerTimeRecord.player_id.in_(ids))
        .order_by(PlayerTimeRecord.start_time.asc(), PlayerTimeRecord.id.asc())
        .all()
        if ids else []
    )
    seat_ids = {int(cast(int, r.seat_id)) for r in records}
    positions = {
        int(cast(int, s.id)): int(cast(int, s.position))
        for s in (db.query(TableSeat).filter(TableSeat.id.in_(seat_ids)).all() if seat_ids else [])
    }

    # Running intervals are not in total_play_time until they close.
    live: dict[int, int] = {}
    for r in records:
        if r.end_time is None:
            pid = int(cast(int, r.player_id))
            live[pid] = live.get(pid, 0) + whole_seconds(cast(Any, r.start_time), now)

    wb = Workbook()
    wb.remove(wb.active)
    _create_players_sheet(wb, players, live)
    _create_records_sheet(wb, records, {int(cast(int, p.id)): cast(str, p.name) for p in players}, positions, now)
    return wb


@router.get("/reports/play-time", dependencies=[Depends(require_roles("admin", "club_owner"))])
def export_play_time(
    club_id: int = Query(...),
    db: DBSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    user: User = Depends(get_current_user),
):
    club = db.get(Club, club_id)
    if club is None:
        raise NotFound(f"Club {club_id} not found")
    require_club_access(user, club)

    now = clock()
    wb = build_play_time_workbook(db, club_id, now)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)

    filename = f"play_time_{club_id}_{now:%Y-%m-%d}.xlsx"

    headers = {
        "Content-Disposition": (
            f'attachment; filename="{filename}"; '
            f"filename*=UTF-8''{quote(filename)}"
        )
    }

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )
