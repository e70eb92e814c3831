import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agenda.core.errors import BranchNotFound, ConfigurationError, NotBookable, PersistenceUnavailable
from agenda.models.branch import Branch
from agenda.scheduling.catalog import BookableService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'address', 'city', 'province', 'phone', 'email')


def _cleaned(fields: dict) -> dict:
    name = (fields.get('name') or '').strip()
    if not name:
        raise ConfigurationError('Branch name is required.')

    cleaned = {'name': name}
    for field in EDITABLE_FIELDS[1:]:
        value = (fields.get(field) or '').strip()
        cleaned[field] = value or None
    return cleaned


def list_branches(db: Session, business_id: int, include_inactive: bool = False) -> list[Branch]:
    query = db.query(Branch).filter(Branch.business_id == business_id)
    if not include_inactive:
        query = query.filter(Branch.is_active.is_(True))
    return query.order_by(Branch.display_order.asc(), Branch.id.asc()).all()


def get_branch(db: Session, business_id: int, branch_id: int) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id, Branch.business_id == business_id).first()
    if branch is None:
        raise BranchNotFound(f'Branch {branch_id} not found.')
    return branch


def create_branch(db: Session, business_id: int, **fields) -> Branch:
    """Add a branch after the existing ones."""
    last_order = db.query(func.max(Branch.display_order)).filter(Branch.business_id == business_id).scalar()
    branch = Branch(
        business_id=business_id,
        is_active=True,
        display_order=0 if last_order is None else last_order + 1,
        **_cleaned(fields),
    )
    try:
        db.add(branch)
        db.commit()
        db.refresh(branch)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not save the branch.') from exc

    logger.info('Branch %s created for business %s', branch.id, business_id)
    return branch


def update_branch(db: Session, business_id: int, branch_id: int, **changes) -> Branch:
    branch = get_branch(db, business_id, branch_id)
    current = {field: getattr(branch, field) for field in EDITABLE_FIELDS}
    current.update({key: value for key, value in changes.items() if key in EDITABLE_FIELDS})

    for field, value in _cleaned(current).items():
        setattr(branch, field, value)

    try:
        db.commit()
        db.refresh(branch)
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not update the branch.') from exc
    return branch


def deactivate_branch(db: Session, business_id: int, branch_id: int) -> None:
    """Stop offering a branch; past reservations keep pointing at it."""
    branch = get_branch(db, business_id, branch_id)
    branch.is_active = False
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceUnavailable('Could not deactivate the branch.') from exc


def check_branch_ids(db: Session, business_id: int, branch_ids: list[int] | None) -> None:
    """Every id a service lists must be one of the business's own branches."""
    if not branch_ids:
        return
    known = {
        branch_id
        for (branch_id,) in db.query(Branch.id).filter(
            Branch.business_id == business_id,
            Branch.id.in_(branch_ids),
        ).all()
    }
    unknown = sorted(set(branch_ids) - known)
    if unknown:
        raise ConfigurationError(f'Unknown branches for this business: {unknown}.')


def resolve_branch(db: Session, business_id: int, branch_id: int | None, service: BookableService) -> Branch | None:
    """The branch a reservation is made at; ``None`` is the business's main location."""
    if branch_id is None:
        return None

    branch = db.query(Branch).filter(
        Branch.id == branch_id,
        Branch.business_id == business_id,
        Branch.is_active.is_(True),
    ).first()
    if branch is None or not service.offers_branch(branch.id):
        raise NotBookable(f'{service.name} is not offered at branch {branch_id}.')
    return branch
