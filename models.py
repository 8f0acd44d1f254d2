# models.py
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

from services.drafting.types import (
    ClientProfile as ClientProfileRecord,
    CompanyDetails,
    CustomField,
    DirectorInfo,
    DocCategory,
    DocSubType,
    HeaderFooterConfig,
    ResolutionItemData,
    ResolutionRecord,
    TemplateRecord,
    UserRecord,
    UserRole,
    new_id,
)

db = SQLAlchemy()


class User(UserMixin, db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(120), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(20), nullable=False, default=UserRole.USER.value)
    user_type = db.Column(db.String(10), nullable=False, default='MT')
    active = db.Column(db.Boolean, nullable=False, default=True)
    can_create_template = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        # Flask-Login refuses to log in inactive users
        return self.active

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    def to_record(self):
        return UserRecord(
            id=self.id,
            email=self.email,
            name=self.name,
            role=UserRole(self.role),
            user_type=self.user_type,
            is_active=self.active,
            can_create_template=self.can_create_template,
            created_at=self.created_at,
            last_login=self.last_login,
        )

    def apply(self, record):
        self.email = record.email
        self.name = record.name
        self.role = record.role.value
        self.user_type = record.user_type
        self.active = record.is_active
        self.can_create_template = record.can_create_template

    def __repr__(self):
        return f'<User {self.email}>'


class DocumentTemplate(db.Model):
    __tablename__ = 'document_template'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(20), nullable=False)
    draft_text = db.Column(db.Text, nullable=False)
    fields = db.Column(db.JSON, nullable=False, default=list)  # list of CustomField dicts
    is_system_template = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    owner = db.relationship('User', backref=db.backref('templates', lazy=True))

    def to_record(self):
        return TemplateRecord(
            id=self.id,
            name=self.name,
            category=DocCategory(self.category),
            draft_text=self.draft_text,
            fields=[CustomField.from_dict(f) for f in self.fields or []],
            user_id=self.user_id,
            is_system_template=self.is_system_template,
            is_active=self.is_active,
            created_at=self.created_at,
        )

    def apply(self, record):
        self.name = record.name
        self.category = record.category.value
        self.draft_text = record.draft_text
        self.fields = [f.to_dict() for f in record.fields]
        self.user_id = record.user_id
        self.is_system_template = record.is_system_template
        self.is_active = record.is_active

    def __repr__(self):
        return f'<DocumentTemplate {self.name}>'


class Resolution(db.Model):
    """A finalized document. Rows are written once and never updated."""
    __tablename__ = 'resolution'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    client_id = db.Column(db.String(36), nullable=True)
    doc_type = db.Column(db.String(20), nullable=False, default=DocCategory.RESOLUTION.value)
    sub_type = db.Column(db.String(30), nullable=True)
    company_name = db.Column(db.String(200), nullable=False, default='')  # denormalized for search
    company_details = db.Column(db.JSON, nullable=False)
    items = db.Column(db.JSON, nullable=False, default=list)
    header_footer = db.Column(db.JSON, nullable=False)
    final_content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    owner = db.relationship('User', backref=db.backref('resolutions', lazy=True, cascade='all, delete-orphan'))

    def to_record(self):
        return ResolutionRecord(
            id=self.id,
            user_id=self.user_id,
            client_id=self.client_id,
            company_details=CompanyDetails.from_dict(self.company_details),
            items=[ResolutionItemData.from_dict(i) for i in self.items or []],
            header_footer=HeaderFooterConfig.from_dict(self.header_footer),
            final_content=self.final_content,
            doc_type=DocCategory(self.doc_type),
            sub_type=DocSubType(self.sub_type) if self.sub_type else None,
            created_at=self.created_at,
        )

    def apply(self, record):
        if self.created_at is not None:
            # created_at is assigned once on insert
            record.created_at = self.created_at
        self.user_id = record.user_id
        self.client_id = record.client_id
        self.doc_type = record.doc_type.value
        self.sub_type = record.sub_type.value if record.sub_type else None
        self.company_name = record.company_details.company_name or ''
        self.company_details = record.company_details.to_dict()
        self.items = [i.to_dict() for i in record.items]
        self.header_footer = record.header_footer.to_dict()
        self.final_content = record.final_content

    def __repr__(self):
        return f'<Resolution {self.doc_type} {self.company_name}>'


class ClientProfile(db.Model):
    __tablename__ = 'client_profile'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    cin = db.Column(db.String(30), unique=True, nullable=False)
    company_name = db.Column(db.String(200), nullable=False)
    address = db.Column(db.Text, nullable=False, default='')
    company_email = db.Column(db.String(120), nullable=False, default='')
    directors = db.Column(db.JSON, nullable=False, default=list)  # [{'name':..., 'din':...}]
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_record(self):
        return ClientProfileRecord(
            id=self.id,
            cin=self.cin,
            company_name=self.company_name,
            address=self.address or '',
            company_email=self.company_email or '',
            directors=[DirectorInfo(name=d.get('name', ''), din=d.get('din', '')) for d in self.directors or []],
            updated_at=self.updated_at,
        )

    def apply(self, record):
        self.cin = record.cin
        self.company_name = record.company_name
        self.address = record.address
        self.company_email = record.company_email
        self.directors = [{'name': d.name, 'din': d.din} for d in record.directors]
        self.updated_at = datetime.utcnow()

    def __repr__(self):
        return f'<ClientProfile {self.cin}>'


class DraftState(db.Model):
    """Serialized wizard state, one row per user."""
    __tablename__ = 'draft_state'

    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), primary_key=True)
    state = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def get_for_user(cls, user_id):
        return db.session.get(cls, user_id)
