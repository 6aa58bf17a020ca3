# Initial schema for the access control graph

import django.db.models.deletion
import django.db.models.functions.text
from django.db import migrations, models


def timestamps():
    return [
        ('created_at', models.DateTimeField(
            auto_now_add=True, db_index=True, help_text='Timestamp when the record was created')),
        ('updated_at', models.DateTimeField(
            auto_now=True, help_text='Timestamp when the record was last updated')),
    ]


def version():
    return ('version', models.PositiveIntegerField(
        default=0, help_text='Optimistic concurrency version, bumped on every update'))


def edge_fk(to, help_text):
    return models.ForeignKey(
        on_delete=django.db.models.deletion.PROTECT,
        related_name='+',
        to=to,
        help_text=help_text,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                version(),
                ('email', models.CharField(
                    max_length=254, help_text='Login email, stored as given, unique ignoring case')),
                ('password_hash', models.CharField(
                    db_column='password_hash', max_length=255, help_text='Hashed password')),
                ('enabled', models.BooleanField(
                    db_index=True, default=False, help_text='Disabled accounts cannot log in')),
            ],
            options={
                'db_table': 'users',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Role',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                version(),
                ('name', models.CharField(
                    max_length=100, help_text="Role name (e.g., 'ADMIN', 'MEMBER'), unique ignoring case")),
            ],
            options={
                'db_table': 'roles',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Group',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                ('name', models.CharField(max_length=100, help_text='Group name, unique ignoring case')),
            ],
            options={
                'db_table': 'groups',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Permission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                ('name', models.CharField(max_length=100, help_text='Permission name, unique ignoring case')),
            ],
            options={
                'db_table': 'permissions',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='UserRole',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                ('user', edge_fk('rbac.user', 'User holding the role')),
                ('role', edge_fk('rbac.role', 'Role held by the user')),
            ],
            options={
                'db_table': 'user_roles',
                'ordering': ['user_id', 'role_id'],
            },
        ),
        migrations.CreateModel(
            name='UserGroup',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                ('user', edge_fk('rbac.user', 'Member user')),
                ('group', edge_fk('rbac.group', 'Group the user belongs to')),
            ],
            options={
                'db_table': 'user_groups',
                'ordering': ['user_id', 'group_id'],
            },
        ),
        migrations.CreateModel(
            name='GroupRole',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                ('group', edge_fk('rbac.group', 'Group granting the role')),
                ('role', edge_fk('rbac.role', 'Role granted to the group')),
            ],
            options={
                'db_table': 'group_roles',
                'ordering': ['group_id', 'role_id'],
            },
        ),
        migrations.CreateModel(
            name='RolePermission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *timestamps(),
                ('role', edge_fk('rbac.role', 'Role that grants this permission')),
                ('permission', edge_fk('rbac.permission', 'Permission being granted')),
            ],
            options={
                'db_table': 'role_permissions',
                'ordering': ['role_id', 'permission_id'],
            },
        ),
        # Case-insensitive name and email uniqueness
        migrations.AddConstraint(
            model_name='user',
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower('email'), name='users_email_ci_unique'),
        ),
        migrations.AddConstraint(
            model_name='role',
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower('name'), name='roles_name_ci_unique'),
        ),
        migrations.AddConstraint(
            model_name='group',
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower('name'), name='groups_name_ci_unique'),
        ),
        migrations.AddConstraint(
            model_name='permission',
            constraint=models.UniqueConstraint(
                django.db.models.functions.text.Lower('name'), name='permissions_name_ci_unique'),
        ),
        # One row per edge pair
        migrations.AddConstraint(
            model_name='userrole',
            constraint=models.UniqueConstraint(fields=('user', 'role'), name='user_roles_pair_unique'),
        ),
        migrations.AddConstraint(
            model_name='usergroup',
            constraint=models.UniqueConstraint(fields=('user', 'group'), name='user_groups_pair_unique'),
        ),
        migrations.AddConstraint(
            model_name='grouprole',
            constraint=models.UniqueConstraint(fields=('group', 'role'), name='group_roles_pair_unique'),
        ),
        migrations.AddConstraint(
            model_name='rolepermission',
            constraint=models.UniqueConstraint(
                fields=('role', 'permission'), name='role_permissions_pair_unique'),
        ),
        # Reverse lookups on the right-hand side of each edge
        migrations.AddIndex(
            model_name='userrole',
            index=models.Index(fields=['role'], name='user_roles_role_idx'),
        ),
        migrations.AddIndex(
            model_name='usergroup',
            index=models.Index(fields=['group'], name='user_groups_group_idx'),
        ),
        migrations.AddIndex(
            model_name='grouprole',
            index=models.Index(fields=['role'], name='group_roles_role_idx'),
        ),
        migrations.AddIndex(
            model_name='rolepermission',
            index=models.Index(fields=['permission'], name='role_perms_permission_idx'),
        ),
    ]
