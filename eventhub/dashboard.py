"""
Contrôleur du tableau de bord : couche « hooks » entre l'interface et les services.

Rôle :
- conserve les miroirs locaux (événements, étudiants, inscriptions) ;
- transforme les erreurs en notifications (une seule par échec), remet les
  indicateurs de chargement à zéro, expose les erreurs de formulaire par champ ;
- sur SessionExpiredError : efface la session et lève le drapeau
  `session_expired` (redirection vers la page de connexion), sans réessai ;
- ignore les réponses obsolètes : si l'utilisateur change d'événement ou relance
  une recherche pendant un chargement, la réponse arrivée trop tard n'écrase pas
  l'état courant ;
- supprime en cascade inscriptions, présences et certificats d'un événement supprimé.

Les services lèvent ; seul ce module attrape.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from eventhub.database import LocalStore
from eventhub.exceptions import EventHubError, NotFoundError, SessionExpiredError, ValidationError
from eventhub.schemas.attendance import AttendanceStats, CheckInResult
from eventhub.schemas.auth import AuthUser
from eventhub.schemas.certificate import BatchResult, CertificateSummary, EligibilityRow
from eventhub.schemas.enrollment import Enrollment
from eventhub.schemas.event import Event, EventCreate, EventUpdate, Session
from eventhub.schemas.student import StudentResponse
from eventhub.services import (
    attendance_service,
    certificate_service,
    enrollment_service,
    event_service,
    student_service,
)
from eventhub.services.api_client import ApiClient
from eventhub.services.notifications import Notifier

logger = logging.getLogger(__name__)

STALE = object()


class Dashboard:
    def __init__(self, api: ApiClient, store: LocalStore, notifier: Optional[Notifier] = None):
        self.api = api
        self.store = store
        self.notifier = notifier or Notifier()

        self.user: Optional[AuthUser] = api.session.user
        self.events: List[Event] = []
        self.students: List[StudentResponse] = []
        self.enrollments: List[Enrollment] = []

        self.loading: Dict[str, bool] = {}
        self.error: Optional[str] = None
        self.form_errors: Dict[str, str] = {}
        self.session_expired = False

        self.selected_event_id: Optional[str] = None
        self._generations: Dict[str, int] = {}

    # ============================================================
    # Gestion des erreurs
    # ============================================================

    def _handle_error(self, title: str, exc: EventHubError) -> None:
        if isinstance(exc, SessionExpiredError):
            self.api.logout()
            self.user = None
            self.session_expired = True
            self.notifier.error("Session expirée", str(exc))
            return
        if isinstance(exc, ValidationError):
            self.form_errors = exc.field_errors
        self.error = str(exc)
        self.notifier.error(title, str(exc))

    async def _call(self, key: str, title: str, fn: Callable[[], Awaitable[Any]], fallback: Any = None) -> Any:
        """Exécute une opération asynchrone avec indicateur de chargement et capture d'erreur."""
        self.loading[key] = True
        self.error = None
        self.form_errors = {}
        try:
            return await fn()
        except EventHubError as exc:
            self._handle_error(title, exc)
            return fallback
        finally:
            self.loading[key] = False

    def _next_generation(self, key: str) -> int:
        self._generations[key] = self._generations.get(key, 0) + 1
        return self._generations[key]

    async def _call_latest(self, key: str, title: str, fn: Callable[[], Awaitable[Any]], fallback: Any = None) -> Any:
        """
        Variante de _call où seule la dernière requête lancée pour `key` compte.
        Une réponse (ou une erreur) arrivée après une requête plus récente est
        ignorée et STALE est retourné.
        """
        generation = self._next_generation(key)
        self.loading[key] = True
        self.error = None
        self.form_errors = {}
        try:
            result = await fn()
        except EventHubError as exc:
            if generation == self._generations[key]:
                self._handle_error(title, exc)
                return fallback
            return STALE
        finally:
            if generation == self._generations[key]:
                self.loading[key] = False

        if generation != self._generations[key]:
            logger.debug("Réponse obsolète ignorée (%s)", key)
            return STALE
        return result

    def _run(self, title: str, fn: Callable[[], Any], fallback: Any = None) -> Any:
        self.error = None
        self.form_errors = {}
        try:
            return fn()
        except EventHubError as exc:
            self._handle_error(title, exc)
            return fallback

    def _event(self, event_id: Optional[str]) -> Optional[Event]:
        return next((e for e in self.events if e.id == str(event_id)), None)

    def _require_event(self, event_id: Optional[str]) -> Event:
        event = self._event(event_id)
        if event is None:
            raise NotFoundError(f"Événement {event_id} introuvable.")
        return event

    # ============================================================
    # Authentification
    # ============================================================

    async def login(self, username: str, password: str) -> bool:
        user = await self._call("auth", "Échec de la connexion", lambda: self.api.login(username, password))
        if user is None:
            return False
        self.user = user
        self.session_expired = False
        return True

    def logout(self) -> None:
        self.api.logout()
        self.user = None
        self.events, self.students, self.enrollments = [], [], []

    # ============================================================
    # Événements et jours
    # ============================================================

    async def load_events(self) -> Optional[List[Event]]:
        """Retourne None si un chargement plus récent a été lancé entre-temps."""
        events = await self._call_latest("events", "Erreur lors du chargement des événements",
                                         lambda: event_service.list_events(self.api))
        if events is STALE:
            return None
        if events is not None:
            self.events = events
        return self.events

    async def create_event(self, data: EventCreate, sessions: Optional[List[Session]] = None) -> Optional[Event]:
        event = await self._call("events", "Erreur lors de la création de l'événement",
                                 lambda: event_service.create_event(self.api, data, sessions))
        if event is not None:
            self.events.append(event)
            self.notifier.success("Événement créé avec succès")
        return event

    async def update_event(self, event_id: str, data: EventUpdate) -> Optional[Event]:
        async def do():
            return await event_service.update_event(self.api, self._require_event(event_id), data)

        updated = await self._call("events", "Erreur lors de la mise à jour de l'événement", do)
        if updated is not None:
            self.events = [updated if e.id == updated.id else e for e in self.events]
            self.notifier.success("Événement mis à jour avec succès")
        return updated

    async def delete_event(self, event_id: str) -> bool:
        async def do():
            await event_service.delete_event(self.api, event_id)
            return True

        if not await self._call("events", "Erreur lors de la suppression de l'événement", do, fallback=False):
            return False

        removed_ids = [e.id for e in self.enrollments if e.event_id == str(event_id)]
        self.events = [e for e in self.events if e.id != str(event_id)]
        self.enrollments = [e for e in self.enrollments if e.event_id != str(event_id)]
        with self.store.SessionLocal() as db:
            attendance_service.delete_attendances_for_event(db, event_id)
            certificate_service.delete_certificates_for_event(db, event_id)
            attendance_service.delete_attendances_for_enrollments(db, removed_ids)
            certificate_service.delete_certificates_for_enrollments(db, removed_ids)
        if self.selected_event_id == str(event_id):
            self.selected_event_id = None
        logger.info("Événement %s supprimé, %d inscription(s) retirée(s) du miroir", event_id, len(removed_ids))
        self.notifier.success("Événement supprimé avec succès")
        return True

    async def create_event_day(self, event_id: str, **fields) -> Optional[Session]:
        async def do():
            return await event_service.create_event_day(self.api, self._require_event(event_id), **fields)

        day = await self._call("days", "Erreur lors de la création du jour", do)
        if day is not None:
            self._replace_event(event_id, lambda ev: ev.sessions + [day])
            self.notifier.success("Jour de l'événement créé avec succès")
        return day

    async def update_event_day(self, event_id: str, day_id: str, **fields) -> Optional[Session]:
        async def do():
            return await event_service.update_event_day(self.api, self._require_event(event_id), day_id, **fields)

        day = await self._call("days", "Erreur lors de la mise à jour du jour", do)
        if day is not None:
            self._replace_event(event_id, lambda ev: [day if s.id == str(day_id) else s for s in ev.sessions])
            self.notifier.success("Jour de l'événement mis à jour avec succès")
        return day

    async def delete_event_day(self, event_id: str, day_id: str) -> bool:
        async def do():
            await event_service.delete_event_day(self.api, event_id, day_id)
            return True

        ok = await self._call("days", "Erreur lors de la suppression du jour", do, fallback=False)
        if ok:
            self._replace_event(event_id, lambda ev: [s for s in ev.sessions if s.id != str(day_id)])
            self.notifier.success("Jour de l'événement supprimé avec succès")
        return ok

    def _replace_event(self, event_id: str, sessions_fn: Callable[[Event], List[Session]]) -> None:
        self.events = [
            e.model_copy(update={"sessions": sessions_fn(e)}) if e.id == str(event_id) else e
            for e in self.events
        ]

    # ============================================================
    # Étudiants
    # ============================================================

    async def load_students(self, query: str = "", page: int = 1) -> Optional[List[StudentResponse]]:
        """
        Recherche au fil de la frappe : seule la dernière requête met à jour la liste.
        Retourne None pour une réponse obsolète.
        """
        students = await self._call_latest("students", "Erreur lors du chargement des étudiants",
                                           lambda: student_service.list_students(self.api, query, page))
        if students is STALE:
            return None
        if students is not None:
            self.students = students
        return self.students

    async def create_student(self, **form) -> Optional[StudentResponse]:
        student = await self._call("students", "Erreur lors de la création de l'étudiant",
                                   lambda: student_service.create_student(self.api, **form))
        if student is not None:
            self.students.append(student)
            self.notifier.success("Étudiant créé", "Étudiant créé avec succès")
        return student

    async def update_student(self, student_id: str, **form) -> Optional[StudentResponse]:
        student = await self._call("students", "Erreur lors de la mise à jour de l'étudiant",
                                   lambda: student_service.update_student(self.api, student_id, **form))
        if student is not None:
            self.students = [student if s.id == student.id else s for s in self.students]
            self.notifier.success("Étudiant mis à jour", "Étudiant mis à jour avec succès")
        return student

    async def delete_student(self, student_id: str) -> bool:
        async def do():
            await student_service.delete_student(self.api, student_id)
            return True

        ok = await self._call("students", "Erreur lors de la suppression de l'étudiant", do, fallback=False)
        if ok:
            self.students = [s for s in self.students if str(s.id) != str(student_id)]
            self.notifier.success("Étudiant supprimé", "Étudiant supprimé avec succès")
        return ok

    # ============================================================
    # Inscriptions
    # ============================================================

    async def select_event(self, event_id: Optional[str]) -> Optional[List[Enrollment]]:
        """
        Sélectionne un événement et charge ses inscriptions.
        Retourne None si la réponse est devenue obsolète entre-temps (ignorée).
        """
        self.selected_event_id = str(event_id) if event_id else None
        if not event_id:
            self._next_generation("enrollments")
            return []

        result = await self._call_latest("enrollments", "Erreur lors du chargement des inscriptions",
                                         lambda: enrollment_service.list_enrollments(self.api, str(event_id)))
        if result is None or result is STALE:
            return None

        self.enrollments = [e for e in self.enrollments if e.event_id != str(event_id)] + result
        return result

    async def enroll_student(self, event_id: Optional[str], student_id: Optional[str]) -> Optional[Enrollment]:
        enrollment = await self._call(
            "enrollments",
            "Erreur lors de l'inscription",
            lambda: enrollment_service.enroll_student(self.api, event_id, student_id, self.enrollments),
        )
        if enrollment is not None:
            self.enrollments = [e for e in self.enrollments if e.id != enrollment.id] + [enrollment]
            self.notifier.success("Inscription créée", "Étudiant inscrit avec succès.")
        return enrollment

    async def cancel_enrollment(self, enrollment_id: str) -> bool:
        current = next((e for e in self.enrollments if e.id == str(enrollment_id)), None)
        cancelled = await self._call(
            "enrollments",
            "Erreur lors de l'annulation",
            lambda: enrollment_service.cancel_enrollment(self.api, current),
        )
        if cancelled is None:
            return False
        self.enrollments = [cancelled if e.id == cancelled.id else e for e in self.enrollments]
        self.notifier.success("Inscription annulée avec succès.")
        return True

    # ============================================================
    # Présences
    # ============================================================

    def scan_qr_code(self, session_id: Optional[str], qr_code: str) -> Optional[CheckInResult]:
        def do():
            with self.store.SessionLocal() as db:
                return attendance_service.scan_qr_code(
                    db,
                    self._event(self.selected_event_id),
                    session_id,
                    qr_code,
                    self.enrollments,
                    self.students,
                )

        result = self._run("Check-in refusé", do)
        if result is not None:
            if result.action == "check_in":
                self.notifier.success(f"Check-in effectué : {result.student_name or result.attendance.enrollment_id}")
            else:
                self.notifier.success("Check-out effectué avec succès")
        return result

    def attendance_stats(self, event_id: str) -> Optional[AttendanceStats]:
        def do():
            event = self._require_event(event_id)
            with self.store.SessionLocal() as db:
                attendances = attendance_service.list_attendances(db)
            return attendance_service.attendance_stats(event, self.enrollments, attendances)

        return self._run("Statistiques indisponibles", do)

    # ============================================================
    # Certificats
    # ============================================================

    def generate_certificates(self, event_id: Optional[str]) -> Optional[BatchResult]:
        def do():
            with self.store.SessionLocal() as db:
                return certificate_service.issue_certificates_for_event(
                    db, event_id, self.events, self.students, self.enrollments
                )

        self.loading["certificates"] = True
        try:
            result = self._run("Génération impossible", do)
        finally:
            self.loading["certificates"] = False

        if result is None:
            return None
        if result.generated_count > 0:
            self.notifier.success(f"{result.generated_count} certificat(s) généré(s) avec succès")
        else:
            self.notifier.info("Aucun certificat généré. Vérifiez les critères d'éligibilité.")
        return result

    def eligibility_preview(self, event_id: str) -> List[EligibilityRow]:
        with self.store.SessionLocal() as db:
            attendances = attendance_service.list_attendances(db)
            certificates = certificate_service.list_certificates(db)
        return certificate_service.eligibility_preview(
            event_id, self.events, self.students, self.enrollments, attendances, certificates
        )

    def certificate_summary(self) -> CertificateSummary:
        with self.store.SessionLocal() as db:
            certificates = certificate_service.list_certificates(db)
        return certificate_service.certificate_summary(self.events, self.enrollments, certificates)
