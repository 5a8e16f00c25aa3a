from datetime import datetime, timezone
import os
import time
import uuid

from flask_sqlalchemy import SQLAlchemy


def _gen_bigint_id():
    """Generate a sortable 64-bit int: millis timestamp << 16 | 16 bits randomness."""
    return (int(time.time() * 1000) << 16) | int.from_bytes(os.urandom(2), 'big')


def _gen_str_id():
    return uuid.uuid4().hex


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


db = SQLAlchemy()


class Location(db.Model):
    __tablename__ = 'locations'

    id = db.Column(db.String(64), primary_key=True, default=_gen_str_id)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    artwork_image_path = db.Column(db.Text)
    share_title = db.Column(db.String(255))
    share_description = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'is_active': self.is_active,
            'artwork_image_path': self.artwork_image_path,
            'share_title': self.share_title,
            'share_description': self.share_description,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Store(db.Model):
    __tablename__ = 'stores'

    id = db.Column(db.String(64), primary_key=True, default=_gen_str_id)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    location_id = db.Column(db.String(64), db.ForeignKey('locations.id'), nullable=False)
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    location = db.relationship('Location', lazy='joined')

    def to_dict(self, with_location=True):
        data = {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'location_id': self.location_id,
            'description': self.description,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
        if with_location:
            data['location'] = self.location.to_dict() if self.location else None
        return data


class Coupon(db.Model):
    __tablename__ = 'coupons'

    id = db.Column(db.BigInteger, primary_key=True, default=_gen_bigint_id)
    code = db.Column(db.String(16), nullable=False, unique=True)
    location_id = db.Column(db.String(64), db.ForeignKey('locations.id'), nullable=False)
    is_used = db.Column(db.Boolean, nullable=False, default=False)
    used_at = db.Column(db.DateTime(timezone=True))
    validated_at = db.Column(db.DateTime(timezone=True))
    validated_by_store_id = db.Column(db.String(64), db.ForeignKey('stores.id'))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    location = db.relationship('Location', lazy='joined')
    validated_by_store = db.relationship('Store', foreign_keys=[validated_by_store_id], lazy='joined')

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'location_id': self.location_id,
            'is_used': self.is_used,
            'used_at': _iso(self.used_at),
            'validated_at': _iso(self.validated_at),
            'validated_by_store_id': self.validated_by_store_id,
            'created_at': _iso(self.created_at),
            'location': self.location.to_dict() if self.location else None,
            'validated_by_store': self.validated_by_store.to_dict(with_location=False) if self.validated_by_store else None,
        }
