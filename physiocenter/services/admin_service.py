from sqlalchemy.orm import Session
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from ..models.exercise import Exercise
from ..models.kine import Kine
from ..models.patient import Patient
from ..models.rendezvous import RendezVous, RendezVousStatus
from ..models.user import User
from ..schemas.admin import ActivityItem, DashboardStats

DAILY_CAPACITY_PER_KINE = 10
WORKING_DAYS_PER_WEEK = 5
RECENT_ITEMS = 3
ACTIVITY_FEED_SIZE = 5

class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def dashboard_stats(self, today: Optional[date] = None) -> DashboardStats:
        """Clinic counters for the admin dashboard.

        Weeks start on Monday. Occupancy compares the week's appointments
        with a nominal capacity of ten slots per kiné and working day.
        """
        today = today or date.today()
        day_start = datetime.combine(today, time.min)
        week_start = day_start - timedelta(days=today.weekday())

        kine_count = self.db.query(Kine).count()
        rdvs_week = self._count_rdvs(week_start, week_start + timedelta(days=7))

        weekly_capacity = kine_count * DAILY_CAPACITY_PER_KINE * WORKING_DAYS_PER_WEEK
        occupancy_rate = round(rdvs_week / weekly_capacity * 100) if weekly_capacity else 0

        return DashboardStats(
            kine_count=kine_count,
            patient_count=self.db.query(Patient).count(),
            exercise_count=self.db.query(Exercise).count(),
            rdvs_today=self._count_rdvs(day_start, day_start + timedelta(days=1)),
            rdvs_week=rdvs_week,
            occupancy_rate=occupancy_rate,
            recent_activity=self._recent_activity(),
        )

    def _count_rdvs(self, start: datetime, end: datetime) -> int:
        return self.db.query(RendezVous).filter(
            RendezVous.date >= start,
            RendezVous.date < end
        ).count()

    def _recent_activity(self) -> List[ActivityItem]:
        users = self.db.query(User).order_by(User.created_at.desc()).limit(RECENT_ITEMS).all()
        rdvs = self.db.query(RendezVous).filter(
            RendezVous.status == RendezVousStatus.UPCOMING
        ).order_by(RendezVous.created_at.desc()).limit(RECENT_ITEMS).all()

        feed = [
            ActivityItem(
                type="user_register",
                message=f"Nouvel utilisateur inscrit: {user.first_name} {user.last_name} ({user.role.value})",
                date=user.created_at,
            )
            for user in users
        ]
        for rdv in rdvs:
            kine_name = f"Dr. {rdv.kine.user.last_name}" if rdv.kine and rdv.kine.user else "un Kiné"
            feed.append(ActivityItem(
                type="rdv_created",
                message=f"Nouveau RDV programmé avec {kine_name}",
                date=rdv.created_at,
            ))

        feed.sort(key=lambda item: item.date or datetime.min, reverse=True)
        return feed[:ACTIVITY_FEED_SIZE]
