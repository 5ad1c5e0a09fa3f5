from followup.models.patient import Patient
from followup.models.medical_record import MedicalRecord
from followup.models.appointment import Appointment
from followup.models.community_visit import CommunityVisit
from followup.models.user import UserRole, Profile, UserPermission

__all__ = ["Patient", "MedicalRecord", "Appointment", "CommunityVisit", "UserRole", "Profile",
           "UserPermission"]
