"""
QR code rendering for ticket codes
"""

import io

import qrcode

class QRService:
    """Service for generating QR codes"""
    
    @staticmethod
    def render_ticket_code(qr_code: str, format: str = 'PNG', box_size: int = 10) -> bytes:
        """Render the scannable code of a ticket as an image"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=4,
        )
        qr.add_data(qr_code)
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffer = io.BytesIO()
        img.save(buffer, format=format)
        
        return buffer.getvalue()
