from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import select
from .models import Employee

def get_employee_for_org(db: Session, employee_id: int, org_id: int) -> Optional[Employee]:
    statement = select(Employee).where(Employee.id == employee_id, Employee.org_id == org_id)
    return db.scalars(statement).first()

def get_direct_report_ids(db: Session, *, manager_id: int, org_id: int) -> List[int]:
    statement = (
        select(Employee.id)
        .where(Employee.manager_id == manager_id, Employee.org_id == org_id)
        .order_by(Employee.id)
    )
    return list(db.scalars(statement))
