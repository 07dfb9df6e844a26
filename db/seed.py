# Insert Sample Fleet
from sqlmodel import Session, SQLModel, select

import models  # noqa: F401  registers every table on SQLModel.metadata
from db.session import engine
from models.vehicle import Vehicle

SAMPLE_VEHICLES = [
    {"vehicle_number": "Sprinter 1", "make": "Mercedes-Benz", "model": "Sprinter"},
    {"vehicle_number": "Sprinter 2", "make": "Mercedes-Benz", "model": "Sprinter"},
    {"vehicle_number": "Transit 1", "make": "Ford", "model": "Transit"},
]


def seed_vehicles():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        for data in SAMPLE_VEHICLES:
            # Check if vehicle already exists to avoid duplicates
            existing = session.exec(
                select(Vehicle).where(Vehicle.vehicle_number == data["vehicle_number"])
            ).first()
            if existing:
                print(f"{data['vehicle_number']} already exists")
                continue
            session.add(Vehicle(**data))
            print(f"Added {data['vehicle_number']}")

        session.commit()


if __name__ == "__main__":
    seed_vehicles()
