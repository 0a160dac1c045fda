#!/usr/bin/env python3
"""
Admin tools for the Aguka platform.

Run from the backend directory, e.g. ``python admin_tools.py stats``.
"""

import os
import sys
import argparse
import asyncio
from typing import Optional

sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)


from sqlalchemy import func
from sqlalchemy.orm import Session
from aguka.core.database import SessionLocal, AsyncSessionLocal
from aguka.models.user import User, UserRole
from aguka.models.job import Job, JobPool
from aguka.models.catalog import TestQuestion
from aguka.models.test import TestSession, SubmissionJob, SessionStatus
from aguka.models.proctoring_violations import ProctoringViolation
from aguka.schemas.user import AdminCreate
from aguka.services.user_service import UserService
from aguka.services.submission_service import SubmissionService


def get_db() -> Session:
    return SessionLocal()


def create_admin_user(email: str, password: str, full_name: str) -> bool:
    db = get_db()
    try:
        user = UserService(db).create_admin(AdminCreate(email=email, password=password, full_name=full_name))
        print(f"✅ Admin {user.email} created (ID: {user.id})")
        return True
    except ValueError as e:
        print(f"❌ Could not create admin {email}: {e}")
        return False
    finally:
        db.close()


def list_users(role: Optional[str] = None, show_detailed: bool = False) -> None:
    db = get_db()
    try:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        users = query.order_by(User.id).all()

        if not users:
            print("📋 No users found")
            return

        print(f"📋 Users: {len(users)}")
        print("=" * 80)

        for user in users:
            created = user.created_at.strftime("%d.%m.%Y %H:%M")
            badge = " ⭐ verified talent" if user.is_verified_talent else ""
            print(f"ID: {user.id} | {user.role}{badge}")
            print(f"   Name: {user.full_name}")
            print(f"   Email: {user.email}")
            print(f"   Created: {created}")

            if show_detailed and user.role == UserRole.CANDIDATE:
                test_count = db.query(TestSession).filter(TestSession.candidate_id == user.id).count()
                completed = db.query(TestSession).filter(
                    TestSession.candidate_id == user.id,
                    TestSession.status == SessionStatus.COMPLETED
                ).count()
                print(f"   Tests: {test_count} (completed: {completed})")

            print("-" * 80)
    finally:
        db.close()


def show_test_sessions(candidate_id: Optional[int] = None, session_id: Optional[str] = None) -> None:
    db = get_db()
    try:
        query = db.query(TestSession)
        if candidate_id:
            query = query.filter(TestSession.candidate_id == candidate_id)
        if session_id:
            query = query.filter(TestSession.id == session_id)
        sessions = query.order_by(TestSession.start_time.desc()).limit(50).all()

        if not sessions:
            print("📋 No test sessions found")
            return

        for session in sessions:
            kind = "practice" if session.is_practice else "official"
            started = session.start_time.strftime("%d.%m.%Y %H:%M")
            print(f"{session.id} | candidate {session.candidate_id} | {kind} | {session.status}")
            print(f"   Started: {started} | Reason: {session.submit_reason or '-'} | Review: {session.review_status}")
            if session.score is not None:
                print(f"   Score: {session.score}")
            print("-" * 80)
    finally:
        db.close()


def show_session_violations(session_id: str) -> None:
    db = get_db()
    try:
        violations = db.query(ProctoringViolation).filter(
            ProctoringViolation.session_id == session_id
        ).order_by(ProctoringViolation.timestamp).all()

        if not violations:
            print(f"✅ No violations for session {session_id}")
            return

        print(f"⚠️  Violations for session {session_id}: {len(violations)}")
        for violation in violations:
            at = violation.timestamp.strftime("%d.%m.%Y %H:%M:%S")
            print(f"   {at} | {violation.violation_type} | {violation.severity} | {violation.description or ''}")
    finally:
        db.close()


def database_stats() -> None:
    db = get_db()
    try:
        role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
        sessions_count = db.query(TestSession).count()
        completed_sessions = db.query(TestSession).filter(TestSession.status == SessionStatus.COMPLETED).count()
        pending_submissions = db.query(SubmissionJob).filter(SubmissionJob.synced_at.is_(None)).count()

        print("📊 Database statistics")
        print("=" * 50)
        print(f"👥 Users: {sum(role_counts.values())} "
              f"(candidates: {role_counts.get(UserRole.CANDIDATE, 0)}, "
              f"employers: {role_counts.get(UserRole.EMPLOYER, 0)}, "
              f"admins: {role_counts.get(UserRole.ADMIN, 0)})")
        print(f"💼 Jobs: {db.query(Job).count()} in {db.query(JobPool).count()} pools")
        print(f"❓ Questions: {db.query(TestQuestion).count()}")
        print(f"📝 Test sessions: {sessions_count} (completed: {completed_sessions})")
        print(f"📤 Submissions waiting to sync: {pending_submissions}")

        review_stats = db.query(TestSession.review_status, func.count(TestSession.id)).filter(
            TestSession.status == SessionStatus.COMPLETED
        ).group_by(TestSession.review_status).all()
        if review_stats:
            print("\n🎯 Reviews:")
            for review_status, count in sorted(review_stats, key=lambda row: row[0] or ""):
                print(f"   {review_status}: {count}")
    finally:
        db.close()


async def _retry_submissions(limit: int):
    async with AsyncSessionLocal() as db:
        return await SubmissionService(db).sync_pending(limit)


def retry_submissions(limit: int = 50) -> None:
    synced, failed = asyncio.run(_retry_submissions(limit))
    print(f"📤 Submissions synced: {synced}, still queued: {failed}")


def main():
    parser = argparse.ArgumentParser(description="Admin tools for the Aguka platform")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    create_admin_parser = subparsers.add_parser('create-admin', help='Create an administrator')
    create_admin_parser.add_argument('--email', required=True, help='Administrator email')
    create_admin_parser.add_argument('--password', required=True, help='Administrator password')
    create_admin_parser.add_argument('--name', required=True, help='Administrator full name')

    list_users_parser = subparsers.add_parser('list-users', help='List users')
    list_users_parser.add_argument('--role', choices=[UserRole.CANDIDATE, UserRole.EMPLOYER, UserRole.ADMIN])
    list_users_parser.add_argument('--detailed', action='store_true', help='Include test counts')

    sessions_parser = subparsers.add_parser('sessions', help='Show test sessions')
    sessions_parser.add_argument('--candidate-id', type=int, help='Candidate ID')
    sessions_parser.add_argument('--session-id', help='Session ID')

    session_violations_parser = subparsers.add_parser('session-violations', help='Proctoring violations of a session')
    session_violations_parser.add_argument('--session-id', required=True, help='Session ID')

    subparsers.add_parser('stats', help='Show database statistics')

    retry_parser = subparsers.add_parser('retry-submissions', help='Sync queued test submissions now')
    retry_parser.add_argument('--limit', type=int, default=50)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    print("🚀 Aguka - Admin Tools")
    print("=" * 50)

    if args.command == 'create-admin':
        create_admin_user(args.email, args.password, args.name)

    elif args.command == 'list-users':
        list_users(args.role, args.detailed)

    elif args.command == 'sessions':
        show_test_sessions(args.candidate_id, args.session_id)

    elif args.command == 'session-violations':
        show_session_violations(args.session_id)

    elif args.command == 'stats':
        database_stats()

    elif args.command == 'retry-submissions':
        retry_submissions(args.limit)


if __name__ == "__main__":
    main()
