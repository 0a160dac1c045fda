import logging
import os
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..models.company import Company
from ..utils.file_paths import Buckets
from ..utils.storage import ObjectStorage, object_storage

logger = logging.getLogger(__name__)

LOGO_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}


class CompanyService:
    def __init__(self, db: Session, storage: ObjectStorage = object_storage):
        self.db = db
        self.storage = storage

    def get_company(self, company_id: int) -> Company:
        company = self.db.query(Company).filter(Company.id == company_id).first()
        if not company:
            raise NotFoundError("Company not found")
        return company

    def list_companies(self) -> list[Company]:
        return self.db.query(Company).order_by(Company.created_at.desc()).all()

    async def upload_logo(self, filename: str, data: bytes) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in LOGO_EXTENSIONS:
            raise ValueError(f"Unsupported logo type '{ext or filename}'")
        if len(data) > settings.max_logo_size:
            raise ValueError("Logo file is too large")
        key = f"company-logos/{uuid.uuid4().hex}{ext}"
        await self.storage.upload(Buckets.PUBLIC, key, data)
        return self.storage.get_public_url(Buckets.PUBLIC, key)

    async def update_details(
        self,
        company_id: int,
        address: str,
        industry: str,
        size: str,
        logo_filename: Optional[str] = None,
        logo_data: Optional[bytes] = None,
    ) -> Company:
        company = self.get_company(company_id)

        logo_url = None
        if logo_data:
            logo_url = await self.upload_logo(logo_filename, logo_data)

        company.address = address
        company.industry = industry
        company.size = size
        company.logo_url = logo_url
        self.db.commit()
        self.db.refresh(company)
        logger.info(f"Company {company_id} details updated")
        return company
