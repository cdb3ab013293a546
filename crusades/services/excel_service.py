"""
Spreadsheet export of event attendees
"""

import io
from typing import Any, Dict, List

import pandas as pd

from crusades.models import Event

class ExcelService:
    """Service for attendee spreadsheet exports"""
    
    COLUMNS = ['Name', 'Email', 'Country', 'Church', 'Ticket Code', 'Registered On', 'Status', 'Checked In At']
    
    @staticmethod
    def attendee_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Flatten ticket/holder pairs into spreadsheet rows"""
        data = []
        for row in rows:
            ticket = row["ticket"]
            holder = row["holder"]
            data.append({
                'Name': holder.full_name if holder else '',
                'Email': holder.email if holder else '',
                'Country': (holder.country or '') if holder else '',
                'Church': (holder.church or '') if holder else '',
                'Ticket Code': ticket.qr_code,
                'Registered On': ticket.registration_date,
                'Status': ticket.status,
                'Checked In At': ticket.checked_in_at.isoformat(timespec='minutes') if ticket.checked_in_at else '',
            })
        return data
    
    @staticmethod
    def export_attendees(event: Event, rows: List[Dict[str, Any]]) -> bytes:
        """Export an event's attendees to Excel"""
        df = pd.DataFrame(ExcelService.attendee_rows(rows), columns=ExcelService.COLUMNS)
        
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Attendees')
            summary = pd.DataFrame([
                {'Field': 'Event', 'Value': event.title},
                {'Field': 'Date', 'Value': event.date},
                {'Field': 'Venue', 'Value': event.venue},
                {'Field': 'Registrations', 'Value': len(df)},
                {'Field': 'Checked In', 'Value': int((df['Status'] == 'used').sum()) if len(df) else 0},
            ])
            summary.to_excel(writer, index=False, sheet_name='Summary')
        
        return buffer.getvalue()
    
    @staticmethod
    def export_filename(event: Event) -> str:
        return f"attendees_{event.id}.xlsx"
