# Generated manually for the accounts app

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('accounts', '0001_initial'),
        ('groups', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='user',
            name='joined_groups',
            field=models.ManyToManyField(blank=True, related_name='indexed_members', to='groups.group'),
        ),
    ]
