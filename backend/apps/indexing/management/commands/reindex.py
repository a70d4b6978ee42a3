"""
Django management command to rebuild document chunks.

Usage:
    python manage.py reindex --document <uuid>
    python manage.py reindex --all
"""
from django.core.management.base import BaseCommand, CommandError

from apps.rag.errors import RagError
from apps.rag.pipeline import get_pipeline


class Command(BaseCommand):
    help = 'Re-chunk and re-embed stored documents'

    def add_arguments(self, parser):
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument(
            '--document',
            dest='document_id',
            help='Reindex a single document by id',
        )
        group.add_argument(
            '--all',
            action='store_true',
            help='Reindex every stored document',
        )

    def handle(self, *args, **options):
        pipeline = get_pipeline()

        if options['document_id']:
            document_ids = [options['document_id']]
        else:
            document_ids = [doc['id'] for doc in pipeline.documents.list_documents()]
            self.stdout.write(f'Reindexing {len(document_ids)} documents...')

        failures = 0
        for document_id in document_ids:
            try:
                result = pipeline.reindex(document_id)
            except RagError as e:
                failures += 1
                self.stderr.write(f'{document_id}: {e.kind}: {e.message}')
                continue
            self.stdout.write(self.style.SUCCESS(
                f'{result.file_name}: {result.embedded_chunks}/{result.total_chunks} chunks'
            ))

        if failures:
            raise CommandError(f'{failures} of {len(document_ids)} documents failed')
