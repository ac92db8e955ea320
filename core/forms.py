"""Forms used by the core application.

This module defines Django forms for sign-up and sign-in, interview
creation/editing, status changes, standup entry and script analysis.
Forms encapsulate both the input widgets displayed to users and the
server-side validation of their fields; persistence is left to the
handlers in ``core.services``.
"""

from __future__ import annotations

from django import forms
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.core.validators import FileExtensionValidator
from django.utils import timezone

from .models import Interview

IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'gif', 'webp', 'bmp']
MAX_IMAGE_UPLOAD_BYTES = 10 * 1024 * 1024


class SignUpForm(forms.Form):
    """Collects information required to create a new user account.

    Accounts created here stay locked until an administrator verifies
    them, so the form never signs the user in.
    """

    name = forms.CharField(label='Name', max_length=255, widget=forms.TextInput(attrs={
        'class': 'form-control',
        'placeholder': 'Jane Doe',
    }))
    email = forms.EmailField(label='Email', widget=forms.EmailInput(attrs={
        'class': 'form-control',
        'placeholder': 'you@example.com',
    }))
    password = forms.CharField(label='Password', widget=forms.PasswordInput(attrs={
        'class': 'form-control',
        'placeholder': '••••••••',
    }))
    confirm_password = forms.CharField(label='Confirm Password', widget=forms.PasswordInput(attrs={
        'class': 'form-control',
        'placeholder': '••••••••',
    }))

    def clean_email(self) -> str:
        email = self.cleaned_data['email'].strip().lower()
        if User.objects.filter(username=email).exists():
            raise forms.ValidationError('An account with this email already exists.')
        return email

    def clean(self) -> dict:  # type: ignore[override]
        cleaned_data = super().clean()
        password = cleaned_data.get('password')
        confirm = cleaned_data.get('confirm_password')
        if password and confirm and password != confirm:
            self.add_error('confirm_password', 'Passwords do not match.')
        elif password:
            try:
                validate_password(password)
            except forms.ValidationError as exc:
                self.add_error('password', exc)
        return cleaned_data


class SignInForm(forms.Form):
    """Simple sign-in form requesting email and password."""

    email = forms.EmailField(label='Email', widget=forms.EmailInput(attrs={
        'class': 'form-control',
        'placeholder': 'you@example.com',
    }))
    password = forms.CharField(label='Password', widget=forms.PasswordInput(attrs={
        'class': 'form-control',
        'placeholder': '••••••••',
    }))


class InterviewForm(forms.ModelForm):
    """Form for creating or editing an interview.

    ``state`` is only edited through :class:`InterviewStatusForm`; new
    interviews start as ``Ongoing`` and edits keep the current state.  The
    optional ``image`` upload is resized and stored by the handler.
    """

    image = forms.FileField(
        label='Screenshot',
        required=False,
        validators=[FileExtensionValidator(IMAGE_EXTENSIONS)],
        widget=forms.ClearableFileInput(attrs={'class': 'form-control', 'accept': 'image/*'}),
    )

    class Meta:
        model = Interview
        fields = [
            'profile',
            'company',
            'step',
            'interview_date',
            'interview_type',
            'note',
            'script',
        ]
        widgets = {
            'profile': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. alex'}),
            'company': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'Company name'}),
            'step': forms.TextInput(attrs={'class': 'form-control', 'placeholder': 'e.g. Phone Screen'}),
            'interview_date': forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}, format='%Y-%m-%d'),
            'interview_type': forms.Select(attrs={'class': 'form-select'}),
            'note': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
            'script': forms.Textarea(attrs={'class': 'form-control', 'rows': 6}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['interview_type'].required = False
        if not self.is_bound and not self.instance.pk:
            self.initial.setdefault('interview_type', Interview.InterviewType.REMOTE)
            self.initial.setdefault('interview_date', timezone.localdate())

    def clean_image(self):
        image = self.cleaned_data.get('image')
        if image and image.size > MAX_IMAGE_UPLOAD_BYTES:
            raise forms.ValidationError('Images must be 10 MB or smaller.')
        return image

    def handler_data(self) -> dict:
        """Cleaned values for the mutation handler, excluding the upload."""

        return {name: value for name, value in self.cleaned_data.items() if name != 'image'}


class InterviewStatusForm(forms.Form):
    state = forms.ChoiceField(choices=Interview.State.choices, widget=forms.RadioSelect)


class StandupForm(forms.Form):
    """Standup entry form.

    Browsers post the items as an outline (``outline``); API clients may
    post the JSON ``items`` payload instead.  Cleaning and validation of
    the items themselves happens in ``core.services.standups``.
    """

    standup_date = forms.DateField(
        label='Date',
        widget=forms.DateInput(attrs={'type': 'date', 'class': 'form-control'}, format='%Y-%m-%d'),
    )
    outline = forms.CharField(
        label='Items',
        required=False,
        widget=forms.Textarea(attrs={
            'class': 'form-control font-monospace',
            'rows': 12,
            'placeholder': '# Yesterday\n- Finished onboarding\n## Blockers\n- Waiting on access',
        }),
    )
    items = forms.CharField(required=False, widget=forms.HiddenInput)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not self.is_bound:
            self.initial.setdefault('standup_date', timezone.localdate())


class ScriptAnalysisForm(forms.Form):
    prompt = forms.CharField(
        label='Question',
        widget=forms.Textarea(attrs={
            'class': 'form-control',
            'rows': 3,
            'placeholder': 'What could I have answered better?',
        }),
    )
    script = forms.CharField(required=False, widget=forms.Textarea(attrs={'class': 'form-control', 'rows': 6}))
