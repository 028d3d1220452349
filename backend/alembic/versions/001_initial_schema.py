"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Artists table
    op.create_table(
        'artists',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('normalized_name', sa.String(255), nullable=False),
        sa.Column('sort_name', sa.String(255)),
        sa.Column('directory_code', sa.String(20)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_artists_id', 'artists', ['id'])
    op.create_index('ix_artists_name', 'artists', ['name'])
    op.create_index('ix_artists_normalized_name', 'artists', ['normalized_name'], unique=True)
    op.create_index('ix_artists_sort_name', 'artists', ['sort_name'])
    op.create_index('ix_artists_directory_code', 'artists', ['directory_code'])

    # Albums table
    op.create_table(
        'albums',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('artist_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('normalized_title', sa.String(255), nullable=False),
        sa.Column('year', sa.Integer()),
        sa.Column('directory', sa.String(512), nullable=False),
        sa.Column('album_type', sa.String(50), default='Album'),
        sa.Column('genres', sa.JSON()),
        sa.Column('is_compilation', sa.Boolean(), default=False),
        sa.Column('track_count', sa.Integer(), default=0),
        sa.Column('duration', sa.Integer(), default=0),
        sa.Column('scan_id', sa.String(64)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.ForeignKeyConstraint(['artist_id'], ['artists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('directory')
    )
    op.create_index('ix_albums_id', 'albums', ['id'])
    op.create_index('ix_albums_title', 'albums', ['title'])
    op.create_index('ix_albums_normalized_title', 'albums', ['normalized_title'])
    op.create_index('ix_albums_year', 'albums', ['year'])
    op.create_index('ix_albums_scan_id', 'albums', ['scan_id'])

    # Tracks table
    op.create_table(
        'tracks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('album_id', sa.Integer(), nullable=False),
        sa.Column('artist_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('normalized_title', sa.String(255), nullable=False),
        sa.Column('track_number', sa.Integer(), nullable=False),
        sa.Column('disc_number', sa.Integer(), default=1),
        sa.Column('duration', sa.Integer()),
        sa.Column('bitrate', sa.Integer()),
        sa.Column('sample_rate', sa.Integer()),
        sa.Column('file_size', sa.BigInteger()),
        sa.Column('directory', sa.String(512), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('relative_path', sa.String(1000), nullable=False),
        sa.Column('checksum', sa.String(64)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['album_id'], ['albums.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['artist_id'], ['artists.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('album_id', 'disc_number', 'track_number', name='uq_track_album_position')
    )
    op.create_index('ix_tracks_id', 'tracks', ['id'])
    op.create_index('ix_tracks_album_id', 'tracks', ['album_id'])
    op.create_index('ix_tracks_artist_id', 'tracks', ['artist_id'])
    op.create_index('ix_tracks_title', 'tracks', ['title'])
    op.create_index('ix_tracks_normalized_title', 'tracks', ['normalized_title'])
    op.create_index('ix_tracks_relative_path', 'tracks', ['relative_path'])

    # Artist directory codes
    op.create_table(
        'artist_directory_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('artist_normalized', sa.String(255), nullable=False),
        sa.Column('artist_name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_artist_directory_codes_id', 'artist_directory_codes', ['id'])
    op.create_index('ix_artist_directory_codes_artist_normalized', 'artist_directory_codes', ['artist_normalized'], unique=True)
    op.create_index('ix_artist_directory_codes_code', 'artist_directory_codes', ['code'], unique=True)

    # Staging items
    op.create_table(
        'staging_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('scan_id', sa.String(64), nullable=False),
        sa.Column('staging_path', sa.String(1000), nullable=False),
        sa.Column('metadata_file', sa.String(1000), nullable=False),
        sa.Column('artist_name', sa.String(255), nullable=False),
        sa.Column('album_name', sa.String(255), nullable=False),
        sa.Column('track_count', sa.Integer(), default=0),
        sa.Column('total_size', sa.BigInteger(), default=0),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending_review'),
        sa.Column('reviewed_by', sa.Integer()),
        sa.Column('reviewed_at', sa.DateTime(timezone=True)),
        sa.Column('notes', sa.String(1000)),
        sa.Column('checksum', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('staging_path')
    )
    op.create_index('ix_staging_items_id', 'staging_items', ['id'])
    op.create_index('ix_staging_items_scan_id', 'staging_items', ['scan_id'])
    op.create_index('ix_staging_items_artist_name', 'staging_items', ['artist_name'])
    op.create_index('ix_staging_items_album_name', 'staging_items', ['album_name'])
    op.create_index('ix_staging_items_status', 'staging_items', ['status'])

    # Quarantine records
    op.create_table(
        'quarantine_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('file_path', sa.String(1000), nullable=False),
        sa.Column('original_path', sa.String(1000), nullable=False),
        sa.Column('reason', sa.String(30), nullable=False),
        sa.Column('message', sa.String(2000)),
        sa.Column('library_id', sa.Integer()),
        sa.Column('scan_id', sa.String(64)),
        sa.Column('resolved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('resolved_at', sa.DateTime(timezone=True)),
        sa.Column('requeued_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quarantine_records_id', 'quarantine_records', ['id'])
    op.create_index('ix_quarantine_records_reason', 'quarantine_records', ['reason'])
    op.create_index('ix_quarantine_records_library_id', 'quarantine_records', ['library_id'])
    op.create_index('ix_quarantine_records_scan_id', 'quarantine_records', ['scan_id'])
    op.create_index('ix_quarantine_records_resolved', 'quarantine_records', ['resolved'])


def downgrade() -> None:
    op.drop_table('quarantine_records')
    op.drop_table('staging_items')
    op.drop_table('artist_directory_codes')
    op.drop_table('tracks')
    op.drop_table('albums')
    op.drop_table('artists')
