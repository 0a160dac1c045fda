from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ....api.deps import get_current_employer
from ....core.database import get_db
from ....models.user import User
from ....schemas.company import Company
from ....services.company_service import CompanyService

router = APIRouter()


@router.get("/me", response_model=Company)
async def get_my_company(
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    return CompanyService(db).get_company(current_user.company_id)


@router.put("/me", response_model=Company)
async def update_my_company(
    address: str = Form(...),
    industry: str = Form(...),
    size: str = Form(...),
    logo: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_employer),
    db: Session = Depends(get_db)
):
    logo_data = await logo.read() if logo else None
    try:
        return await CompanyService(db).update_details(
            current_user.company_id,
            address=address,
            industry=industry,
            size=size,
            logo_filename=logo.filename if logo else None,
            logo_data=logo_data,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
