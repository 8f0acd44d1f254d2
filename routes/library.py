import logging
import re

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required

from forms import FIELD_TYPE_CHOICES, LABEL_PATTERN, TemplateForm
from services.drafting import (
    CustomField,
    CustomFieldType,
    DocCategory,
    PlaceholderEngine,
    StoreError,
    SYSTEM_VARIABLES,
    TemplateRecord,
    ValidationError,
    check_labels,
    new_id,
)
from services.drafting.substitution import DYNAMIC_SIGNATORY_TOKEN, append_token
from routes.decorators import template_builder_required
from utils import get_store

logger = logging.getLogger(__name__)

library_bp = Blueprint('library', __name__, url_prefix='/library')


@library_bp.route('')
@login_required
def index():
    category = request.args.get('category', '')
    search_query = request.args.get('q', '').strip().lower()

    templates = [t for t in get_store().get('templates') if t.is_active]
    if category:
        templates = [t for t in templates if t.category.value == category]
    if search_query:
        templates = [t for t in templates if search_query in t.name.lower()]

    return render_template(
        'library/index.html',
        templates=templates,
        categories=list(DocCategory),
        selected_category=category,
        search_query=request.args.get('q', ''),
    )


# Quick-add field library shown beside the builder's field rows
FIELD_LIBRARY = [
    ('Text Fields', [(label, CustomFieldType.TEXT) for label in (
        'Bank Name', 'Branch', 'Person Name', 'Designation', 'Property Address', 'Purpose')]),
    ('Dates', [(label, CustomFieldType.DATE) for label in (
        'Effective Date', 'Expiry Date', 'Agreement Date', 'DoB')]),
    ('Numbers / Currency', [
        ('Amount', CustomFieldType.CURRENCY),
        ('Interest Rate', CustomFieldType.NUMBER),
        ('Share Quantity', CustomFieldType.NUMBER),
        ('Loan No', CustomFieldType.NUMBER),
    ]),
]

FIELD_PRESETS = {label: field_type for _, presets in FIELD_LIBRARY for label, field_type in presets}


def parse_field_type(value):
    try:
        return CustomFieldType(value)
    except ValueError:
        logger.warning(f"Unknown field type {value!r} in template builder, using text")
        return CustomFieldType.TEXT


def fields_from_request():
    """
    Rebuild the builder's field rows from parallel form lists.

    Every posted row is kept, blank labels included, so row indices in
    ``insert:N`` and ``remove:N`` actions match what the user sees. Blank
    rows are dropped on save by ``saved_fields``.
    """
    labels = request.form.getlist('field_label')
    types = request.form.getlist('field_type')
    required = set(request.form.getlist('field_required'))

    fields = []
    for index, label in enumerate(labels):
        field_type = types[index] if index < len(types) else CustomFieldType.TEXT.value
        fields.append(CustomField(
            id=new_id(),
            label=label.strip(),
            type=parse_field_type(field_type),
            required=str(index) in required,
        ))
    return fields


def saved_fields(fields):
    return [f for f in fields if f.label]


def row_index(action, fields):
    """Row number from an ``insert:N`` / ``remove:N`` action, or None."""
    value = action.split(':', 1)[1]
    if value.isdigit() and int(value) < len(fields):
        return int(value)
    return None


def apply_builder_action(action, form, fields):
    """Row editing actions that redisplay the builder without saving."""
    if action.startswith('insert:'):
        index = row_index(action, fields)
        if index is not None and fields[index].label:
            form.draft_text.data = append_token(form.draft_text.data, fields[index].label)
    elif action.startswith('remove:'):
        index = row_index(action, fields)
        if index is not None:
            del fields[index]
    elif action.startswith('preset:'):
        label = action.split(':', 1)[1]
        if label in FIELD_PRESETS:
            fields.append(CustomField(id=new_id(), label=label, type=FIELD_PRESETS[label], required=True))
    elif action == 'add_field':
        fields.append(CustomField(id=new_id(), label='', type=CustomFieldType.TEXT))


def render_builder(form, fields):
    return render_template('library/builder.html', form=form, fields=fields,
                           field_types=FIELD_TYPE_CHOICES, field_library=FIELD_LIBRARY,
                           system_variables=SYSTEM_VARIABLES)


def validate_fields(name, fields):
    """Flash every problem; True when the field list can be saved."""
    ok = True
    for custom_field in fields:
        if not re.match(LABEL_PATTERN, custom_field.label):
            flash(f"Field label '{custom_field.label}' may not contain braces.", 'error')
            ok = False
        if custom_field.label in SYSTEM_VARIABLES:
            flash(f"'{custom_field.label}' is a system variable and cannot be a field label.", 'error')
            ok = False
    try:
        check_labels(name, [f.label for f in fields])
    except ValidationError as e:
        flash(str(e), 'error')
        ok = False
    return ok


@library_bp.route('/new', methods=['GET', 'POST'])
@login_required
@template_builder_required
def new_template():
    form = TemplateForm()
    fields = fields_from_request() if request.method == 'POST' else []
    action = request.form.get('action', 'save')

    if request.method == 'POST' and action != 'save':
        apply_builder_action(action, form, fields)
        return render_builder(form, fields)

    to_save = saved_fields(fields)
    if form.validate_on_submit() and validate_fields(form.name.data.strip(), to_save):
        is_system = bool(form.is_system_template.data) and current_user.is_admin
        record = TemplateRecord(
            id=new_id(),
            name=form.name.data.strip(),
            category=DocCategory(form.category.data),
            draft_text=form.draft_text.data,
            fields=to_save,
            user_id=current_user.id,
            is_system_template=is_system,
        )

        known = set(record.labels) | set(SYSTEM_VARIABLES) | {DYNAMIC_SIGNATORY_TOKEN}
        unknown = [t for t in PlaceholderEngine.extract_placeholders(record.draft_text) if t not in known]
        if unknown:
            flash(f"Placeholders without a field will render as [Name]: {', '.join(unknown)}", 'warning')

        try:
            get_store().put('templates', record)
        except StoreError as e:
            flash(f'Could not save template: {e}', 'error')
        else:
            logger.info(f"Template '{record.name}' created by {current_user.email}")
            flash(f"Template '{record.name}' saved.", 'success')
            return redirect(url_for('library.index'))

    return render_builder(form, fields)
