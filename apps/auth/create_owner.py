from getpass import getpass
from core.database import SessionLocal
from apps.auth.models import StaffUser, StaffRole
from apps.auth.services import get_password_hash, get_user_by_email


def create_owner():
    db = SessionLocal()
    try:
        email = input("Owner email: ")
        if get_user_by_email(db, email):
            print(f"An account for {email} already exists.")
            return
        name = input("Owner name: ")
        password = getpass("Owner password: ")

        owner = StaffUser(
            name=name,
            email=email,
            hashed_password=get_password_hash(password),
            role=StaffRole.OWNER
        )
        db.add(owner)
        db.commit()
        print("Owner account created. Use it to add staff accounts from the API.")
    finally:
        db.close()

if __name__ == "__main__":
    create_owner()
