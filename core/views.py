"""Core view functions for the Interview Tracker.

This module implements account sign-up/sign-in, the personal interview
dashboard, the cross-user interview view, the daily standup pages, the
script analysis page and the JSON endpoints backing them.  Views stay
thin: persistence lives in ``core.services.interviews`` and
``core.services.standups``, filtering and grouping in
``core.services.interview_groups`` and modal bookkeeping in
``core.services.view_state``.
"""

from __future__ import annotations

import logging
from functools import wraps
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

from django.contrib import messages
from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.models import User
from django.db import transaction
from django.http import HttpRequest, HttpResponse, JsonResponse, QueryDict
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_http_methods, require_POST
from openpyxl import Workbook

from core.services.activity import log_activity
from core.services.errors import MutationResult, StoreError, TrackerError, ValidationError
from core.services.interview_groups import (
    InterviewFilters,
    build_grouped_view,
    unique_profiles,
    unique_user_names,
)
from core.services.interviews import (
    create_interview,
    delete_interview,
    get_all_interviews,
    get_interview,
    get_interviews,
    update_interview,
    update_interview_status,
)
from core.services.script_analysis import analyze_interview_script, render_markdown
from core.services.standups import (
    create_or_update_standup,
    delete_standup,
    get_all_standups,
    get_my_standups,
    parse_outline,
    render_outline,
)
from core.services.view_state import (
    InvalidTransition,
    ListController,
    Mode,
    ViewState,
    begin_delete,
    begin_submit,
    close,
    delete_finished,
    load_state,
    open_create,
    open_edit,
    open_status,
    save_state,
    submit_failed,
    submit_succeeded,
)

from .forms import (
    InterviewForm,
    InterviewStatusForm,
    ScriptAnalysisForm,
    SignInForm,
    SignUpForm,
    StandupForm,
)
from .models import Interview, Profile

logger = logging.getLogger(__name__)

DASHBOARD_VIEW = 'dashboard'
STANDUPS_VIEW = 'standups'

SIGNUP_SUCCESS_MESSAGE = (
    'Account created! Your account is pending admin verification. '
    'You will be able to sign in once approved.'
)
PROFILE_MISSING_MESSAGE = 'Account verification pending. Please contact admin.'
UNVERIFIED_MESSAGE = 'Your account is pending admin verification. Please try again later.'
FORM_ERROR_MESSAGE = 'Please correct the errors below.'

EXPORT_COLUMNS = [
    ('profile', 'Profile'),
    ('company', 'Company'),
    ('step', 'Step'),
    ('interview_date', 'Date'),
    ('state', 'Status'),
    ('interview_type', 'Type'),
    ('note', 'Note'),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _wants_json(request: HttpRequest) -> bool:
    accept = request.headers.get('Accept', '')
    return 'application/json' in accept or request.headers.get('X-Requested-With') == 'XMLHttpRequest'


def _is_verified(user: User) -> bool:
    profile = getattr(user, 'profile', None)
    return bool(profile and profile.verified)


def verified_required(view: Callable[..., HttpResponse] | None = None, *, api: bool = False):
    """Require a signed-in user whose profile has been verified.

    Anonymous page requests are sent to the sign-in page; unverified users
    are signed out first.  With ``api=True`` both cases answer with a JSON
    ``{"error": ...}`` body instead of a redirect.
    """

    def decorator(func: Callable[..., HttpResponse]) -> Callable[..., HttpResponse]:
        @wraps(func)
        def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
            user = request.user
            if not user.is_authenticated:
                if api:
                    return JsonResponse({'error': 'Unauthorized'}, status=401)
                return redirect(f"{reverse('signin')}?{urlencode({'next': request.get_full_path()})}")
            if not _is_verified(user):
                logout(request)
                if api:
                    return JsonResponse({'error': 'Unauthorized'}, status=401)
                messages.error(request, 'Please wait for admin verification.')
                return redirect('signin')
            return func(request, *args, **kwargs)

        return wrapper

    if view is not None:
        return decorator(view)
    return decorator


def _parse_id(raw: Any) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _dashboard_url(query: Dict[str, Any] | None = None) -> str:
    url = reverse('dashboard')
    if query:
        url = f"{url}?{urlencode(query, doseq=True)}"
    return url


def _filter_source(request: HttpRequest) -> QueryDict:
    """Query parameters of the list page: GET, or the hidden ``return_query`` of a form post."""

    if request.method == 'POST' and request.POST.get('return_query'):
        return QueryDict(request.POST['return_query'])
    return request.GET


def _filter_query(request: HttpRequest) -> Dict[str, Any]:
    return InterviewFilters.from_query(_filter_source(request)).as_query()


def _ensure_modal(controller: ListController, mode: Mode, record_id: Optional[int] = None) -> None:
    """Open the modal a form was posted from unless it is already the open one."""

    state = controller.state
    if state.is_busy or (state.mode is mode and state.record_id == record_id):
        return
    if mode is Mode.CREATE:
        controller.transition(open_create)
    elif mode is Mode.EDIT:
        controller.transition(open_edit, record_id)
    else:
        controller.transition(open_status, record_id)


def _result_response(result: MutationResult, **extra: Any) -> JsonResponse:
    payload = result.as_dict()
    if result.ok:
        payload.update(extra)
    return JsonResponse(payload, status=result.status_code)


def _run_submission(
    request: HttpRequest,
    view_name: str,
    controller: ListController,
    perform: Callable[[], Any],
    apply: Callable[[Any], None],
    on_failure: Callable[[TrackerError], HttpResponse],
    on_success: Callable[[Any], HttpResponse],
    fallback_url: str,
) -> HttpResponse:
    """Drive one modal submission through the view-state machine.

    The ``submitting`` state is written to the session store before the
    handler runs, so a second post of the same form is rejected instead of
    being processed twice.
    """

    try:
        controller.transition(begin_submit)
    except InvalidTransition as exc:
        if _wants_json(request):
            return JsonResponse({'error': str(exc)}, status=409)
        messages.warning(request, str(exc))
        return redirect(fallback_url)
    save_state(request.session, view_name, controller.state)
    request.session.save()

    try:
        row = perform()
    except TrackerError as exc:
        controller.transition(submit_failed, str(exc))
        save_state(request.session, view_name, controller.state)
        logger.info('Submission on %s failed for %s: %s', view_name, request.user, exc)
        return on_failure(exc)
    except Exception:
        save_state(request.session, view_name, ViewState())
        raise

    apply(row)
    controller.transition(submit_succeeded)
    save_state(request.session, view_name, controller.state)
    return on_success(row)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def signup(request: HttpRequest) -> HttpResponse:
    """Create an unverified account.

    The new user is never signed in: an administrator has to verify the
    profile before the first sign-in succeeds.
    """
    if request.user.is_authenticated and _is_verified(request.user):
        return redirect('dashboard')

    if request.method == 'POST':
        form = SignUpForm(request.POST)
        if form.is_valid():
            email = form.cleaned_data['email']
            name = form.cleaned_data['name'].strip()
            with transaction.atomic():
                user = User.objects.create_user(
                    username=email,
                    email=email,
                    password=form.cleaned_data['password'],
                    first_name=name[:150],
                )
                Profile.objects.create(user=user, name=name, verified=False)
            log_activity(user, 'Signed up', email)
            messages.success(request, SIGNUP_SUCCESS_MESSAGE)
            return redirect('signin')
    else:
        form = SignUpForm()
    return render(request, 'auth/signup.html', {'form': form})


def signin(request: HttpRequest) -> HttpResponse:
    """Authenticate with email and password, refusing unverified accounts."""
    if request.user.is_authenticated and _is_verified(request.user):
        return redirect('dashboard')

    if request.method == 'POST':
        form = SignInForm(request.POST)
        if form.is_valid():
            email = form.cleaned_data['email'].strip().lower()
            user = authenticate(request, username=email, password=form.cleaned_data['password'])
            if user is None:
                messages.error(request, 'Invalid email or password.')
            else:
                profile = Profile.objects.filter(user=user).first()
                if profile is None:
                    messages.error(request, PROFILE_MISSING_MESSAGE)
                elif not profile.verified:
                    messages.error(request, UNVERIFIED_MESSAGE)
                else:
                    login(request, user)
                    log_activity(user, 'Signed in')
                    next_url = request.POST.get('next') or request.GET.get('next')
                    if next_url and next_url.startswith('/') and not next_url.startswith('//'):
                        return redirect(next_url)
                    return redirect('dashboard')
    else:
        form = SignInForm()
    return render(request, 'auth/signin.html', {'form': form, 'next': request.GET.get('next', '')})


@require_http_methods(["GET", "POST"])
def signout(request: HttpRequest) -> HttpResponse:
    """Log the user out and redirect to the sign-in page."""
    if request.user.is_authenticated:
        log_activity(request.user, 'Signed out')
    logout(request)
    return redirect('signin')


# ---------------------------------------------------------------------------
# Interview dashboard
# ---------------------------------------------------------------------------

def _load_dashboard(request: HttpRequest) -> ListController:
    return ListController(get_interviews(request.user), load_state(request.session, DASHBOARD_VIEW))


def _dashboard_context(
    request: HttpRequest,
    controller: ListController,
    form: Optional[InterviewForm] = None,
) -> Dict[str, Any]:
    source = _filter_source(request)
    filters = InterviewFilters.from_query(source)
    filtered, groups = build_grouped_view(controller.records, filters)
    state = controller.state
    record = controller.active_record
    if form is None and state.modal is Mode.CREATE:
        form = InterviewForm()
    elif form is None and state.modal is Mode.EDIT and record is not None:
        form = InterviewForm(instance=record)
    status_form = None
    if state.modal is Mode.STATUS and record is not None:
        status_form = InterviewStatusForm(initial={'state': record.state})
    return {
        'groups': groups,
        'filtered_count': len(filtered),
        'total_count': len(controller.records),
        'filters': filters,
        'filter_query': urlencode(filters.as_query(), doseq=True),
        'profiles': unique_profiles(controller.records),
        'states': Interview.State.values,
        'expanded': set(source.getlist('expand')),
        'view_state': state,
        'active_record': record,
        'form': form,
        'status_form': status_form,
    }


def _render_dashboard(
    request: HttpRequest,
    controller: ListController,
    form: Optional[InterviewForm] = None,
) -> HttpResponse:
    return render(request, 'dashboard.html', _dashboard_context(request, controller, form))


@verified_required
def dashboard(request: HttpRequest) -> HttpResponse:
    """Grouped card view of the user's own interviews.

    ``?modal=create``, ``?edit=<id>`` and ``?status_for=<id>`` open the
    corresponding modal; any other request closes whatever was open.
    """
    try:
        controller = _load_dashboard(request)
    except TrackerError as exc:
        messages.error(request, f'Error: {exc}')
        controller = ListController([], load_state(request.session, DASHBOARD_VIEW))

    edit_id = _parse_id(request.GET.get('edit'))
    status_id = _parse_id(request.GET.get('status_for'))
    try:
        if request.GET.get('modal') == 'create':
            controller.transition(open_create)
        elif edit_id is not None and controller.find(edit_id) is not None:
            controller.transition(open_edit, edit_id)
        elif status_id is not None and controller.find(status_id) is not None:
            controller.transition(open_status, status_id)
        elif not controller.state.is_busy:
            controller.transition(close)
    except InvalidTransition as exc:
        messages.warning(request, str(exc))
    save_state(request.session, DASHBOARD_VIEW, controller.state)
    return _render_dashboard(request, controller)


def _interview_submission(request: HttpRequest, interview_id: Optional[int] = None) -> HttpResponse:
    controller = _load_dashboard(request)
    return_query = _filter_query(request)
    fallback_url = _dashboard_url(return_query)
    instance = None
    if interview_id is not None:
        if controller.find(interview_id) is None:
            messages.error(request, 'Error: Interview not found')
            return redirect(fallback_url)
        # A fresh row: binding the form mutates its instance.
        instance = get_interview(request.user, interview_id)
    _ensure_modal(controller, Mode.CREATE if interview_id is None else Mode.EDIT, interview_id)
    form = InterviewForm(request.POST, request.FILES, instance=instance)

    def perform() -> Interview:
        if not form.is_valid():
            raise ValidationError(FORM_ERROR_MESSAGE)
        image = form.cleaned_data.get('image')
        data = form.handler_data()
        if interview_id is None:
            return create_interview(request.user, data, image=image)
        return update_interview(request.user, interview_id, data, image=image)

    def on_failure(exc: TrackerError) -> HttpResponse:
        if _wants_json(request):
            payload = MutationResult.failure(exc).as_dict()
            if form.errors:
                payload['errors'] = form.errors.get_json_data()
            return JsonResponse(payload, status=exc.status_code)
        return _render_dashboard(request, controller, form)

    def on_success(row: Interview) -> HttpResponse:
        if _wants_json(request):
            _, groups = build_grouped_view(controller.records, InterviewFilters.from_query(return_query))
            return _result_response(MutationResult(data=row), groups=[g.as_dict() for g in groups])
        messages.success(request, 'Interview saved.' if interview_id else 'Interview added.')
        return redirect(fallback_url)

    apply = controller.apply_created if interview_id is None else controller.apply_updated
    return _run_submission(
        request, DASHBOARD_VIEW, controller, perform, apply, on_failure, on_success, fallback_url,
    )


@verified_required
@require_POST
def interview_create(request: HttpRequest) -> HttpResponse:
    return _interview_submission(request)


@verified_required
@require_POST
def interview_edit(request: HttpRequest, interview_id: int) -> HttpResponse:
    return _interview_submission(request, interview_id)


@verified_required
@require_POST
def interview_status(request: HttpRequest, interview_id: int) -> HttpResponse:
    """Change an interview's status; errors are reported as messages."""
    controller = _load_dashboard(request)
    fallback_url = _dashboard_url(_filter_query(request))
    if controller.find(interview_id) is None:
        messages.error(request, 'Error: Interview not found')
        return redirect(fallback_url)
    _ensure_modal(controller, Mode.STATUS, interview_id)
    form = InterviewStatusForm(request.POST)

    def perform() -> Interview:
        if not form.is_valid():
            raise ValidationError('Please choose a valid status.')
        return update_interview_status(request.user, interview_id, form.cleaned_data['state'])

    def on_failure(exc: TrackerError) -> HttpResponse:
        if _wants_json(request):
            return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
        messages.error(request, f'Error: {exc}')
        return redirect(fallback_url)

    def on_success(row: Interview) -> HttpResponse:
        if _wants_json(request):
            return _result_response(MutationResult(data=row))
        messages.success(request, f'Status changed to {row.state}.')
        return redirect(fallback_url)

    return _run_submission(
        request, DASHBOARD_VIEW, controller, perform, controller.apply_updated, on_failure, on_success, fallback_url,
    )


@verified_required
@require_http_methods(["GET", "POST"])
def interview_delete(request: HttpRequest, interview_id: int) -> HttpResponse:
    """Confirm (GET) and perform (POST) the deletion of an interview."""
    return_query = _filter_query(request)
    try:
        interview = get_interview(request.user, interview_id)
    except TrackerError as exc:
        if _wants_json(request):
            return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
        messages.error(request, f'Error: {exc}')
        return redirect(_dashboard_url(return_query))

    if request.method == 'GET':
        return render(request, 'confirm_delete.html', {
            'title': 'Delete interview',
            'message': 'Are you sure you want to delete this interview?',
            'object_label': f'{interview.company} · {interview.step} ({interview.interview_date:%b %d, %Y})',
            'action_url': reverse('interview_delete', args=[interview_id]),
            'cancel_url': _dashboard_url(return_query),
            'return_query': urlencode(return_query, doseq=True),
        })

    return _run_deletion(
        request,
        DASHBOARD_VIEW,
        _load_dashboard(request),
        interview_id,
        lambda: delete_interview(request.user, interview_id),
        _dashboard_url(return_query),
        'Interview deleted.',
    )


def _run_deletion(
    request: HttpRequest,
    view_name: str,
    controller: ListController,
    record_id: int,
    perform: Callable[[], None],
    success_url: str,
    success_message: str,
) -> HttpResponse:
    if not controller.state.is_busy:
        controller.transition(close)
    try:
        controller.transition(begin_delete, record_id)
    except InvalidTransition as exc:
        if _wants_json(request):
            return JsonResponse({'error': str(exc)}, status=409)
        messages.warning(request, str(exc))
        return redirect(success_url)
    save_state(request.session, view_name, controller.state)
    request.session.save()

    try:
        perform()
    except TrackerError as exc:
        controller.transition(delete_finished, str(exc))
        save_state(request.session, view_name, controller.state)
        if _wants_json(request):
            return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
        messages.error(request, f'Error: {exc}')
        return redirect(success_url)
    except Exception:
        save_state(request.session, view_name, ViewState())
        raise

    controller.apply_deleted(record_id)
    controller.transition(delete_finished)
    save_state(request.session, view_name, controller.state)
    if _wants_json(request):
        return _result_response(MutationResult())
    messages.success(request, success_message)
    return redirect(success_url)


@verified_required
@require_http_methods(["GET", "POST"])
def interview_analyze(request: HttpRequest, interview_id: int) -> HttpResponse:
    """Ask the AI coach about an interview's script.

    JSON clients receive ``{"success": true, "response": ..., "html": ...}``
    or ``{"success": false, "error": ...}``.
    """
    try:
        interview = get_interview(request.user, interview_id)
    except TrackerError as exc:
        if _wants_json(request):
            return JsonResponse({'success': False, 'error': str(exc)}, status=exc.status_code)
        messages.error(request, f'Error: {exc}')
        return redirect('dashboard')

    analysis_markdown = ''
    analysis_html = ''
    error = ''
    if request.method == 'POST':
        form = ScriptAnalysisForm(request.POST)
        if form.is_valid():
            script = form.cleaned_data.get('script') or interview.script or ''
            try:
                analysis_markdown = analyze_interview_script(script, form.cleaned_data['prompt'])
                analysis_html = render_markdown(analysis_markdown)
                log_activity(request.user, 'Analyzed interview script', f"Interview {interview.pk}")
            except TrackerError as exc:
                error = str(exc)
                if _wants_json(request):
                    return JsonResponse({'success': False, 'error': error}, status=exc.status_code)
        elif _wants_json(request):
            return JsonResponse({'success': False, 'error': 'Please enter a question or request.'}, status=400)
        if _wants_json(request):
            return JsonResponse({'success': True, 'response': analysis_markdown, 'html': analysis_html})
    else:
        form = ScriptAnalysisForm(initial={'script': interview.script or ''})
    return render(request, 'interview_analyze.html', {
        'interview': interview,
        'form': form,
        'analysis_html': analysis_html,
        'error': error,
    })


@verified_required
def interviews_export(request: HttpRequest) -> HttpResponse:
    """Stream the filtered personal interview list as an Excel workbook."""
    try:
        records = get_interviews(request.user)
    except TrackerError as exc:
        messages.error(request, f'Error: {exc}')
        return redirect('dashboard')
    filtered, _ = build_grouped_view(records, InterviewFilters.from_query(request.GET))

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = 'Interviews'
    worksheet.append([label for _, label in EXPORT_COLUMNS])
    for interview in filtered:
        worksheet.append([getattr(interview, field) or '' for field, _ in EXPORT_COLUMNS])
    for cell in worksheet['D'][1:]:
        cell.number_format = 'yyyy-mm-dd'
    stream = BytesIO()
    workbook.save(stream)
    filename = timezone.now().strftime('interviews-%Y%m%d-%H%M%S.xlsx')
    response = HttpResponse(
        stream.getvalue(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    log_activity(request.user, 'Exported interviews', f"{len(filtered)} rows")
    return response


# ---------------------------------------------------------------------------
# Cross-user interview view
# ---------------------------------------------------------------------------

def _all_interview_filters(request: HttpRequest) -> InterviewFilters:
    """Filters for the cross-user view.

    Changing the selected user clears the profile selection, because the
    profile labels belong to the previously selected user.
    """
    filters = InterviewFilters.from_query(request.GET)
    previous_user = request.GET.get('prev_user')
    if previous_user is not None and previous_user != filters.user_name:
        filters = InterviewFilters(
            company=filters.company,
            status=filters.status,
            date_from=filters.date_from,
            date_to=filters.date_to,
            user_name=filters.user_name,
        )
    return filters


@verified_required
def interviews_all(request: HttpRequest) -> HttpResponse:
    """Read-only grouped view of every user's interviews."""
    try:
        records = get_all_interviews(request.user)
    except TrackerError as exc:
        messages.error(request, f'Error: {exc}')
        records = []
    filters = _all_interview_filters(request)
    filtered, groups = build_grouped_view(records, filters, by_user=True)
    return render(request, 'interviews_all.html', {
        'groups': groups,
        'filtered_count': len(filtered),
        'total_count': len(records),
        'filters': filters,
        'user_names': unique_user_names(records),
        'profiles': unique_profiles(records, filters.user_name) if filters.user_name else [],
        'states': Interview.State.values,
        'expanded': set(request.GET.getlist('expand')),
    })


# ---------------------------------------------------------------------------
# Daily standups
# ---------------------------------------------------------------------------

def _standup_view_mode(request: HttpRequest) -> str:
    return 'all' if (request.GET.get('view') or request.POST.get('view')) == 'all' else 'mine'


def _load_standups(request: HttpRequest, view_mode: str) -> ListController:
    loader = get_all_standups if view_mode == 'all' else get_my_standups
    return ListController(loader(request.user), load_state(request.session, STANDUPS_VIEW))


def _standup_groups(standups: List[Any]) -> List[Dict[str, Any]]:
    """Group standups by date (newest first) for the "all" view."""
    groups: Dict[Any, List[Any]] = {}
    for standup in standups:
        groups.setdefault(standup.standup_date, []).append(standup)
    return [{'date': day, 'standups': rows} for day, rows in groups.items()]


def _render_standups(
    request: HttpRequest,
    controller: ListController,
    view_mode: str,
    form: Optional[StandupForm] = None,
) -> HttpResponse:
    state = controller.state
    record = controller.active_record
    if form is None and state.modal is Mode.CREATE:
        form = StandupForm()
    elif form is None and state.modal is Mode.EDIT and record is not None:
        form = StandupForm(initial={
            'standup_date': record.standup_date,
            'outline': render_outline(record.items),
        })
    return render(request, 'standups.html', {
        'view_mode': view_mode,
        'standups': controller.records,
        'standup_groups': _standup_groups(controller.records) if view_mode == 'all' else [],
        'view_state': state,
        'active_record': record,
        'form': form,
    })


@verified_required
def standups(request: HttpRequest) -> HttpResponse:
    """Own standups ("mine") or everyone's ("all") with the entry modal."""
    view_mode = _standup_view_mode(request)
    try:
        controller = _load_standups(request, view_mode)
    except TrackerError as exc:
        messages.error(request, f'Error: {exc}')
        controller = ListController([], load_state(request.session, STANDUPS_VIEW))

    edit_id = _parse_id(request.GET.get('edit'))
    try:
        if view_mode == 'mine' and request.GET.get('modal') == 'create':
            controller.transition(open_create)
        elif view_mode == 'mine' and edit_id is not None and controller.find(edit_id) is not None:
            controller.transition(open_edit, edit_id)
        elif not controller.state.is_busy:
            controller.transition(close)
    except InvalidTransition as exc:
        messages.warning(request, str(exc))
    save_state(request.session, STANDUPS_VIEW, controller.state)
    return _render_standups(request, controller, view_mode)


@verified_required
@require_POST
def standup_save(request: HttpRequest) -> HttpResponse:
    """Create or replace the standup for the posted date."""
    controller = _load_standups(request, 'mine')
    if controller.state.modal is None:
        _ensure_modal(controller, Mode.CREATE)
    form = StandupForm(request.POST)

    def perform():
        if not form.is_valid():
            raise ValidationError(FORM_ERROR_MESSAGE)
        items = form.cleaned_data.get('items') or parse_outline(form.cleaned_data.get('outline') or '')
        return create_or_update_standup(request.user, form.cleaned_data['standup_date'], items)

    def on_failure(exc: TrackerError) -> HttpResponse:
        if _wants_json(request):
            return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
        return _render_standups(request, controller, 'mine', form)

    def on_success(row) -> HttpResponse:
        if _wants_json(request):
            return _result_response(MutationResult(data=row))
        messages.success(request, 'Standup saved.')
        return redirect('standups')

    return _run_submission(
        request, STANDUPS_VIEW, controller, perform, controller.apply_saved, on_failure, on_success,
        reverse('standups'),
    )


@verified_required
@require_http_methods(["GET", "POST"])
def standup_delete(request: HttpRequest, standup_id: int) -> HttpResponse:
    controller = _load_standups(request, 'mine')
    standup = controller.find(standup_id)
    if standup is None:
        exc = StoreError('Standup not found')
        if _wants_json(request):
            return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
        messages.error(request, f'Error: {exc}')
        return redirect('standups')

    if request.method == 'GET':
        return render(request, 'confirm_delete.html', {
            'title': 'Delete standup',
            'message': 'Are you sure you want to delete this standup?',
            'object_label': f'{standup.standup_date:%a, %b %d, %Y}',
            'action_url': reverse('standup_delete', args=[standup_id]),
            'cancel_url': reverse('standups'),
        })

    return _run_deletion(
        request,
        STANDUPS_VIEW,
        controller,
        standup_id,
        lambda: delete_standup(request.user, standup_id),
        reverse('standups'),
        'Standup deleted.',
    )


# ---------------------------------------------------------------------------
# JSON endpoints
# ---------------------------------------------------------------------------

@verified_required(api=True)
def api_interviews(request: HttpRequest) -> JsonResponse:
    """Own interviews, filtered and grouped by the query parameters."""
    try:
        records = get_interviews(request.user)
    except TrackerError as exc:
        return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
    filtered, groups = build_grouped_view(records, InterviewFilters.from_query(request.GET))
    return _result_response(MutationResult(data=filtered), groups=[g.as_dict() for g in groups])


@verified_required(api=True)
def api_interviews_all(request: HttpRequest) -> JsonResponse:
    try:
        records = get_all_interviews(request.user)
    except TrackerError as exc:
        return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
    filtered, groups = build_grouped_view(records, InterviewFilters.from_query(request.GET), by_user=True)
    return _result_response(
        MutationResult(data=filtered),
        groups=[g.as_dict() for g in groups],
        user_names=unique_user_names(records),
    )


@verified_required(api=True)
def api_standups(request: HttpRequest) -> JsonResponse:
    loader = get_all_standups if request.GET.get('view') == 'all' else get_my_standups
    try:
        rows = loader(request.user)
    except TrackerError as exc:
        return JsonResponse(MutationResult.failure(exc).as_dict(), status=exc.status_code)
    return _result_response(MutationResult(data=rows))
