from typing import Optional
from sqlmodel import Session, select
from movie_api.models.upload import ImageUpload


def record_upload(db: Session, key: str, owner_id: int) -> ImageUpload:
    upload = ImageUpload(key=key, owner_id=owner_id)
    db.add(upload)
    db.commit()
    db.refresh(upload)
    return upload


def find_upload(db: Session, key: str) -> Optional[ImageUpload]:
    stmt = select(ImageUpload).where(ImageUpload.key == key)
    return db.exec(stmt).first()


def delete_upload(db: Session, key: str) -> None:
    upload = find_upload(db, key)
    if upload:
        db.delete(upload)
        db.commit()
