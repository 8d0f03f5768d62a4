from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='StoredFile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Display name, unique per owner', max_length=255)),
                ('extension', models.CharField(help_text='Lower-cased suffix of the name, without dot', max_length=32)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('content_ref', models.CharField(help_text='Content store key: {owner_id}/{random}_{name}', max_length=500)),
                ('created_at', models.DateTimeField()),
                ('modified_at', models.DateTimeField()),
                ('owner_id', models.BigIntegerField(db_index=True)),
                ('owner_name', models.CharField(max_length=150)),
                ('editor_id', models.BigIntegerField()),
                ('editor_name', models.CharField(max_length=150)),
                ('version', models.PositiveIntegerField(default=1)),
            ],
            options={
                'verbose_name': 'Stored file',
                'verbose_name_plural': 'Stored files',
                'ordering': ['id'],
                'indexes': [models.Index(fields=['owner_id', 'extension'], name='files_owner_extension_idx')],
                'constraints': [models.UniqueConstraint(fields=('owner_id', 'name'), name='files_owner_name_unique')],
            },
        ),
    ]
