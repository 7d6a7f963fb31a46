# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# users et students doivent être chargés avant sections / enrollments.

from app.models.user import User  # noqa: F401
from app.models.student import Student  # noqa: F401
from app.models.course import Course, Enrollment, Section  # noqa: F401
from app.models.session import ClassSession  # noqa: F401
from app.models.qr_code import QRCode  # noqa: F401
from app.models.attendance import Attendance  # noqa: F401
