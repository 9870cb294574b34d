"""
Initial migration - Create report and reference tables

Revision ID: 001_initial
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from geoalchemy2 import Geometry

# Revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

SUBDISTRICT_CODE_CHECK = "~ '^\\d{2}\\.\\d{2}\\.\\d{2}\\.\\d{4}$'"

SEED_CENTROIDS = [
    ('35.10.02.2005', -7.257472, 112.752090, 'Kelurahan Ketintang, Gayungan, Surabaya', '35', '35.10'),
    ('35.78.01.1001', -7.983908, 112.630892, 'Desa Sukorejo, Sukorejo, Ponorogo', '35', '35.78'),
    ('35.09.01.2001', -7.943893, 112.612766, 'Kelurahan Banjarsari, Buduran, Sidoarjo', '35', '35.09'),
]


def upgrade() -> None:
    """Create all tables."""

    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # Create damaged_roads table
    op.create_table(
        'damaged_roads',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('subdistrict_code', sa.String(13), nullable=False),
        sa.Column('path', Geometry('LINESTRING', srid=4326, spatial_index=False), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('author_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='submitted'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('LENGTH(title) >= 3 AND LENGTH(title) <= 100', name='valid_title_length'),
        sa.CheckConstraint(f'subdistrict_code {SUBDISTRICT_CODE_CHECK}', name='valid_subdistrict_code_format'),
        sa.CheckConstraint(
            "status IN ('submitted', 'under_verification', 'verified', "
            "'pending_resolved', 'resolved', 'archived')",
            name='valid_status',
        ),
        sa.CheckConstraint(
            'description IS NULL OR LENGTH(description) <= 500',
            name='valid_description_length',
        ),
    )

    op.create_index('idx_damaged_roads_author', 'damaged_roads', ['author_id'])
    op.create_index('idx_damaged_roads_status', 'damaged_roads', ['status'])
    op.create_index('idx_damaged_roads_subdistrict', 'damaged_roads', ['subdistrict_code'])
    op.create_index('idx_damaged_roads_created_at', 'damaged_roads', [sa.text('created_at DESC')])
    op.create_index('idx_damaged_roads_path_geom', 'damaged_roads', ['path'], postgresql_using='gist')

    # Create damaged_road_photos table
    op.create_table(
        'damaged_road_photos',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('road_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('damaged_roads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('position', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('content_type', sa.String(50)),
        sa.Column('file_size', sa.BigInteger()),
        sa.Column('validation_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('validated_at', sa.DateTime(timezone=True)),
        sa.Column('validation_error', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('road_id', 'url', name='unique_photo_url'),
        sa.CheckConstraint(
            "validation_status IN ('pending', 'valid', 'invalid', 'error')",
            name='valid_validation_status',
        ),
    )

    op.create_index('idx_damaged_road_photos_road', 'damaged_road_photos', ['road_id'])
    op.create_index('idx_damaged_road_photos_validation', 'damaged_road_photos', ['validation_status'])

    # Create subdistrict_centroids table
    centroids = op.create_table(
        'subdistrict_centroids',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True,
                  server_default=sa.text('gen_random_uuid()')),
        sa.Column('subdistrict_code', sa.String(20), nullable=False, unique=True),
        sa.Column('centroid_lat', sa.Float(), nullable=False),
        sa.Column('centroid_lng', sa.Float(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('province_code', sa.String(5), nullable=False),
        sa.Column('district_code', sa.String(8), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(f'subdistrict_code {SUBDISTRICT_CODE_CHECK}', name='chk_subdistrict_code_format'),
        sa.CheckConstraint('centroid_lat >= -11 AND centroid_lat <= 6', name='chk_centroid_lat_bounds'),
        sa.CheckConstraint('centroid_lng >= 95 AND centroid_lng <= 141', name='chk_centroid_lng_bounds'),
    )

    op.create_index('idx_subdistrict_centroids_province', 'subdistrict_centroids', ['province_code'])
    op.create_index('idx_subdistrict_centroids_district', 'subdistrict_centroids', ['district_code'])

    # Reference centroids for development and testing
    op.bulk_insert(centroids, [
        {
            'subdistrict_code': code,
            'centroid_lat': lat,
            'centroid_lng': lng,
            'name': name,
            'province_code': province,
            'district_code': district,
        }
        for code, lat, lng, name, province, district in SEED_CENTROIDS
    ])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('subdistrict_centroids')
    op.drop_table('damaged_road_photos')
    op.drop_table('damaged_roads')
