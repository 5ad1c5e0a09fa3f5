"""
Generate demo staff, patients, records, appointments and home visits.
Run with: python -m scripts.generate_demo_data
Run with: python -m scripts.generate_demo_data --patients 120 --seed 7
"""

import argparse
import asyncio
import random
from datetime import date, datetime, timedelta, timezone
from followup.auth import create_token
from followup.database import engine, async_session, Base
from followup.enums import AppointmentStatus, Permission, Priority, Role
from followup.models import Patient, MedicalRecord, Appointment, CommunityVisit, UserRole, Profile, UserPermission
from sqlalchemy import select, func

FIRST_NAMES = [
    "Maria", "Ana", "Francisca", "Antônia", "Adriana", "Juliana", "Márcia", "Fernanda",
    "Patrícia", "Aline", "José", "João", "Antônio", "Francisco", "Carlos", "Paulo",
    "Pedro", "Lucas", "Luiz", "Marcos", "Raimundo", "Sebastião", "Tereza", "Rita",
]

LAST_NAMES = [
    "Silva", "Santos", "Oliveira", "Souza", "Rodrigues", "Ferreira", "Alves", "Pereira",
    "Lima", "Gomes", "Costa", "Ribeiro", "Martins", "Carvalho", "Almeida", "Lopes",
]

STREETS = ["Rua das Flores", "Av. Brasil", "Rua São José", "Travessa da Paz", "Rua do Campo"]

TERRITORIES = ["Microárea 01", "Microárea 02", "Microárea 03", "Microárea 04", None]

DIAGNOSES = [
    "Hipertensão arterial sistêmica",
    "Diabetes mellitus tipo 2",
    "Pré-natal de baixo risco",
    "Asma",
    "Tuberculose em tratamento",
    "Hanseníase",
    "Acompanhamento de puericultura",
    "Depressão leve",
]

PRIORITIES = [None, None, Priority.LOW.value, Priority.MEDIUM.value, Priority.HIGH.value, Priority.URGENT.value]

STAFF = [
    {"user_id": "00000000-0000-0000-0000-00000000d0c1", "full_name": "Helena Duarte", "role": Role.DOCTOR, "permissions": []},
    {"user_id": "00000000-0000-0000-0000-00000000e0f1", "full_name": "Clara Mendes", "role": Role.NURSE, "permissions": []},
    {"user_id": "00000000-0000-0000-0000-00000000a6e1", "full_name": "Jorge Batista", "role": Role.AGENT, "permissions": []},
    {"user_id": "00000000-0000-0000-0000-00000000d1c1", "full_name": "Sônia Prado", "role": Role.DOCTOR, "permissions": [Permission.DIRECTOR.value]},
]


def generate_name() -> str:
    return f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)} {random.choice(LAST_NAMES)}"


def generate_cns() -> str:
    return "".join(str(random.randint(0, 9)) for _ in range(15))


def generate_phone() -> str:
    return f"(11) 9{random.randint(1000, 9999)}-{random.randint(1000, 9999)}"


async def seed_staff(db):
    for member in STAFF:
        existing = await db.scalar(select(Profile).where(Profile.user_id == member["user_id"]))
        if existing:
            continue
        db.add(Profile(user_id=member["user_id"], full_name=member["full_name"]))
        db.add(UserRole(user_id=member["user_id"], role=member["role"].value))
        for permission in member["permissions"]:
            db.add(UserPermission(user_id=member["user_id"], permission=permission))


async def generate(patient_count: int):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        await seed_staff(db)

        count = await db.scalar(select(func.count(Patient.id)))
        if count and count >= patient_count:
            print(f"Database already has {count} patients. Skipping generation.")
        else:
            print(f"Generating {patient_count} demo patients...")
            today = date.today()
            now = datetime.now(timezone.utc)
            doctors = [m["user_id"] for m in STAFF if m["role"] == Role.DOCTOR]
            agent = next(m["user_id"] for m in STAFF if m["role"] == Role.AGENT)

            for _ in range(patient_count):
                patient = Patient(
                    full_name=generate_name(),
                    cns=generate_cns() if random.random() < 0.9 else None,
                    phone=generate_phone() if random.random() < 0.8 else None,
                    address=f"{random.choice(STREETS)}, {random.randint(1, 999)}",
                    territory=random.choice(TERRITORIES),
                    manual_priority=random.choice(PRIORITIES),
                )
                db.add(patient)

                # 1-3 encounters, oldest first
                for n in range(random.randint(1, 3)):
                    created = now - timedelta(days=random.randint(60, 120) - n * 30)
                    deadline = None
                    if random.random() < 0.85:
                        deadline = today + timedelta(days=random.randint(-60, 30))
                    db.add(MedicalRecord(
                        patient=patient,
                        doctor_id=random.choice(doctors),
                        diagnosis=random.choice(DIAGNOSES),
                        prescription="Conforme protocolo",
                        return_deadline_date=deadline,
                        created_at=created,
                    ))

                if random.random() < 0.3:
                    db.add(Appointment(
                        patient=patient,
                        status=random.choice(list(AppointmentStatus)).value,
                        scheduled_for=now + timedelta(days=random.randint(1, 20)),
                        created_at=now - timedelta(days=random.randint(0, 45)),
                    ))
                if random.random() < 0.4:
                    db.add(CommunityVisit(
                        patient=patient,
                        agent_id=agent,
                        notes="Visita domiciliar de busca ativa",
                        created_at=now - timedelta(days=random.randint(0, 45)),
                    ))

        await db.commit()

    print("Demo tokens:")
    for member in STAFF:
        label = f"{member['role'].value}{' + director' if member['permissions'] else ''}"
        print(f"  {member['full_name']} ({label}): {create_token(member['user_id'], member['permissions'])}")
    await engine.dispose()
    print("Demo data generation complete!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate demo data for the follow-up tracker")
    parser.add_argument("--patients", type=int, default=60, help="Number of patients to create")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    args = parser.parse_args()
    if args.seed is not None:
        random.seed(args.seed)
    asyncio.run(generate(args.patients))
