from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import Principal, require_permission
from app.db.database import get_db
from app.models.inventory import Customer, Product, StockBatch, Supplier
from app.schemas.inventory import (
    PartyCreate,
    PartyOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    StockBatchOut,
)
from app.services.money import quantize_money, to_unit_price

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def _clean_category(value: str | None) -> str | None:
    if not value:
        return None
    return value.strip() or None


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    _: Principal = Depends(require_permission("ledger:manage")),
    db: Session = Depends(get_db),
):
    product = Product(
        sku=payload.sku.strip().upper(),
        name=payload.name.strip(),
        unit=payload.unit,
        category=_clean_category(payload.category),
        description=payload.description,
        price=to_unit_price(payload.price, "price"),
        stock=0,
    )
    db.add(product)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Product SKU already exists") from exc
    db.refresh(product)
    return product


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    _: Principal = Depends(require_permission("ledger:manage")),
    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    if payload.name is not None:
        product.name = payload.name.strip()
    if payload.unit is not None:
        product.unit = payload.unit
    if payload.category is not None:
        product.category = _clean_category(payload.category)
    if payload.description is not None:
        product.description = payload.description.strip() or None
    if payload.price is not None:
        product.price = to_unit_price(payload.price, "price")
    if payload.is_active is not None:
        product.is_active = payload.is_active

    db.commit()
    db.refresh(product)
    return product


@router.get("/products", response_model=list[ProductOut])
def list_products(
    include_inactive: bool = False,
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    query = select(Product).order_by(Product.name.asc())
    if not include_inactive:
        query = query.where(Product.is_active.is_(True))
    return list(db.scalars(query).all())


@router.get("/products/{product_id}/batches", response_model=list[StockBatchOut])
def list_product_batches(
    product_id: int,
    open_only: bool = False,
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    if not db.get(Product, product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    query = (
        select(StockBatch)
        .where(StockBatch.product_id == product_id)
        .order_by(StockBatch.created_at.asc(), StockBatch.id.asc())
    )
    if open_only:
        query = query.where(StockBatch.quantity > 0)
    return list(db.scalars(query).all())


def _create_party(db: Session, model: type, payload: PartyCreate, label: str):
    party = model(
        name=payload.name.strip(),
        phone=payload.phone.strip() if payload.phone else None,
        address=payload.address.strip() if payload.address else None,
        opening_balance=quantize_money(payload.opening_balance),
    )
    db.add(party)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{label} name already exists") from exc
    db.refresh(party)
    return party


@router.post("/customers", response_model=PartyOut, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: PartyCreate,
    _: Principal = Depends(require_permission("ledger:sell")),
    db: Session = Depends(get_db),
):
    return _create_party(db, Customer, payload, "Customer")


@router.get("/customers", response_model=list[PartyOut])
def list_customers(
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return list(db.scalars(select(Customer).order_by(Customer.name.asc())).all())


@router.post("/suppliers", response_model=PartyOut, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: PartyCreate,
    _: Principal = Depends(require_permission("ledger:manage")),
    db: Session = Depends(get_db),
):
    return _create_party(db, Supplier, payload, "Supplier")


@router.get("/suppliers", response_model=list[PartyOut])
def list_suppliers(
    _: Principal = Depends(require_permission("ledger:view")),
    db: Session = Depends(get_db),
):
    return list(db.scalars(select(Supplier).order_by(Supplier.name.asc())).all())
