# accounts/management/commands/import_regions.py
"""
Import divisions, districts and upazilas (with centroids) from a CSV or
Excel sheet.

Each row names a region chain. A row with no upazila sets the district's
coordinates; a row with only a division sets the division's. Re-running the
import updates coordinates in place.

USAGE:
    python manage.py import_regions regions.xlsx
    python manage.py import_regions regions.csv --dry-run
"""
import os

import pandas as pd
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import District, Division, Upazila

REQUIRED_COLUMNS = ['division', 'district', 'upazila', 'latitude', 'longitude']


def read_sheet(path):
    if path.lower().endswith('.csv'):
        df = pd.read_csv(path)
    else:
        df = pd.read_excel(path)
    df.columns = [str(col).strip().lower() for col in df.columns]
    return df


def clean_text(value):
    if pd.isna(value):
        return ''
    return str(value).strip()


def clean_coordinate(value):
    if pd.isna(value) or str(value).strip() == '':
        return None
    return float(value)


class Command(BaseCommand):
    help = 'Import administrative regions and their centroids from CSV or Excel'

    def add_arguments(self, parser):
        parser.add_argument('path', type=str, help='CSV or Excel file with region rows')
        parser.add_argument('--dry-run', action='store_true', help='Validate and report without saving')

    def handle(self, *args, **options):
        path = options['path']
        if not os.path.exists(path):
            raise CommandError(f'File not found: {path}')

        try:
            df = read_sheet(path)
        except Exception as exc:
            raise CommandError(f'Could not read {path}: {exc}')

        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise CommandError(f'Missing columns: {", ".join(missing)}')

        total = len(df)
        self.stdout.write(f'Found {total} rows in {path}')

        counts = {'division': 0, 'district': 0, 'upazila': 0}
        errors = []

        with transaction.atomic():
            for index, row in df.iterrows():
                line = index + 2  # header is line 1
                try:
                    level = self.import_row(row)
                except ValueError as exc:
                    errors.append(f'line {line}: {exc}')
                    continue
                counts[level] += 1

            if options['dry_run']:
                transaction.set_rollback(True)

        self.stdout.write(
            f"Divisions: {counts['division']}  Districts: {counts['district']}  "
            f"Upazilas: {counts['upazila']}  Errors: {len(errors)}"
        )
        for error in errors:
            self.stdout.write(self.style.ERROR(f'  {error}'))

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('Dry run, nothing saved.'))
        else:
            self.stdout.write(self.style.SUCCESS('Region import complete.'))

    def import_row(self, row):
        """Save one row and return the level it set coordinates for."""
        division_name = clean_text(row['division'])
        district_name = clean_text(row['district'])
        upazila_name = clean_text(row['upazila'])
        latitude = clean_coordinate(row['latitude'])
        longitude = clean_coordinate(row['longitude'])

        if not division_name:
            raise ValueError('division is required')
        if upazila_name and not district_name:
            raise ValueError(f'upazila {upazila_name} has no district')
        if (latitude is None) != (longitude is None):
            raise ValueError('latitude and longitude must be given together')
        if latitude is not None and not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise ValueError(f'coordinates out of range: {latitude}, {longitude}')

        coords = {'latitude': latitude, 'longitude': longitude}

        if not district_name:
            Division.objects.update_or_create(name=division_name, defaults=coords)
            return 'division'

        division, _ = Division.objects.get_or_create(name=division_name)
        if not upazila_name:
            District.objects.update_or_create(division=division, name=district_name, defaults=coords)
            return 'district'

        district, _ = District.objects.get_or_create(division=division, name=district_name)
        Upazila.objects.update_or_create(district=district, name=upazila_name, defaults=coords)
        return 'upazila'
