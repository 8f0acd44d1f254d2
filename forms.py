from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed, FileRequired
from wtforms import StringField, PasswordField, SubmitField, TextAreaField, SelectField, BooleanField, DateField
from wtforms.validators import DataRequired, Email, Length, EqualTo, Optional, Regexp

from services.drafting.types import CustomFieldType, DocCategory, MeetingType

CATEGORY_CHOICES = [(c.value, c.value.title() if c != DocCategory.DIR2 else 'DIR-2') for c in DocCategory]
MEETING_TYPE_CHOICES = [(m.value, m.value) for m in MeetingType]
FIELD_TYPE_CHOICES = [(t.value, t.value.title()) for t in CustomFieldType]

# Labels become {{Label}} tokens, so braces are not allowed in them
LABEL_PATTERN = r'^[^{}]+$'


class RegistrationForm(FlaskForm):
    name = StringField('Full Name', validators=[DataRequired(), Length(max=120)])
    email = StringField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=6)])
    confirm_password = PasswordField('Confirm Password',
                                   validators=[DataRequired(), EqualTo('password')])
    submit = SubmitField('Register')


class LoginForm(FlaskForm):
    email = StringField('Email', validators=[
        DataRequired(message='Please enter your email')
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Please enter your password')
    ])
    submit = SubmitField('Sign in')


class CompanyDetailsForm(FlaskForm):
    """Entity information step of the drafting wizard."""
    company_name = StringField('Company Name', validators=[Optional(), Length(max=200)])
    cin = StringField('CIN', validators=[Optional(), Length(max=30)])
    address = TextAreaField('Registered Address', validators=[Optional()])
    company_email = StringField('Company Email', validators=[Optional(), Email()])
    meeting_type = SelectField('Meeting Type', choices=MEETING_TYPE_CHOICES, default=MeetingType.BOARD.value)
    meeting_date = DateField('Meeting Date', validators=[Optional()])
    meeting_time = StringField('Meeting Time', validators=[Optional(), Length(max=20)])
    meeting_place = StringField('Meeting Place', validators=[Optional(), Length(max=200)])
    financial_year = StringField('Financial Year', validators=[Optional(), Length(max=20)])
    chairman_name = StringField('Chairman Name', validators=[Optional(), Length(max=120)])
    chairman_din = StringField('Chairman DIN', validators=[Optional(), Length(max=20)])
    directors_present = TextAreaField('Directors Present (comma separated)', validators=[Optional()])


class HeaderFooterForm(FlaskForm):
    """Statutory header step: letterhead and signatory overrides."""
    show_header = BooleanField('Show letterhead', default=True)
    header_title = StringField('Letterhead Title', validators=[Optional(), Length(max=200)])
    header_subtitle = StringField('Letterhead Subtitle', validators=[Optional(), Length(max=300)])
    signatory_name = StringField('Signatory Name', validators=[Optional(), Length(max=120)])
    signatory_designation = StringField('Signatory Designation', validators=[Optional(), Length(max=120)])
    signatory_din = StringField('Signatory DIN', validators=[Optional(), Length(max=20)])


class TemplateForm(FlaskForm):
    """
    Template builder. Fields arrive as parallel lists
    (field_label / field_type / field_required) and are validated in the route.
    """
    name = StringField('Template Name', validators=[DataRequired(), Length(max=200)])
    category = SelectField('Category', choices=CATEGORY_CHOICES, default=DocCategory.RESOLUTION.value)
    draft_text = TextAreaField('Draft Text', validators=[DataRequired(message='Draft text cannot be empty')])
    is_system_template = BooleanField('System template (visible to everyone)')
    submit = SubmitField('Save Template')


class ClientProfileForm(FlaskForm):
    company_name = StringField('Company Name', validators=[DataRequired(), Length(max=200)])
    cin = StringField('CIN', validators=[
        DataRequired(),
        Length(max=30),
        Regexp(r'^[A-Za-z0-9]+$', message='CIN must be letters and digits only'),
    ])
    address = TextAreaField('Registered Address', validators=[Optional()])
    company_email = StringField('Company Email', validators=[Optional(), Email()])
    submit = SubmitField('Save Client')


class ClientImportForm(FlaskForm):
    csv_file = FileField('Client CSV', validators=[
        FileRequired(),
        FileAllowed(['csv'], 'CSV files only'),
    ])
    submit = SubmitField('Import')
