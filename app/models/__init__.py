from app.models.announcement import Announcement, AnnouncementSex, AnnouncementSpecies, AnnouncementStatus

__all__ = ["Announcement", "AnnouncementSex", "AnnouncementSpecies", "AnnouncementStatus"]
