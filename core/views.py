from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST

from .forms import ProfileForm
from .models import UserProfile
from .shortcuts import safe_next
from .tables import save_prefs

MODULES = [
    ("Action Items", "core.access_action_items", [
        ("Allot Sample", "actionitems:allot_sample_list"),
        ("Accept Sample", "actionitems:accept_sample_list"),
        ("Assign Chemist", "actionitems:assign_chemist_list"),
        ("Perform Testing", "actionitems:perform_testing_list"),
        ("Review By HOD", "actionitems:hod_review_list"),
        ("Draft Reports", "actionitems:draft_report_list"),
    ]),
    ("Testing", "core.access_testing", [
        ("TRF List", "testing:trf_list"),
    ]),
    ("Calibration", "core.access_calibration", [
        ("Calibration Prices", "calibration:price_lookup"),
    ]),
    ("Master Data", "core.access_master_data", [
        ("Master Documents", "masterdata:document_list"),
        ("Training Modules", "masterdata:training_list"),
    ]),
]


@login_required
def home(request):
    modules = [
        {"title": title, "links": links}
        for title, perm, links in MODULES
        if request.user.has_perm(perm)
    ]
    return render(request, 'index.html', {'modules': modules})


@login_required
def profile(request):
    instance, _ = UserProfile.objects.get_or_create(user=request.user)
    if request.method == 'POST':
        form = ProfileForm(request.POST, instance=instance)
        if form.is_valid():
            form.save()
            messages.success(request, 'Profile updated.')
            return redirect('core:profile')
    else:
        form = ProfileForm(instance=instance)
    return render(request, 'core/profile.html', {'form': form})


@login_required
@require_POST
def table_prefs(request):
    table_key = request.POST.get('table_key', '').strip()
    next_url = safe_next(request)
    if not table_key:
        messages.error(request, 'Unknown table.')
        return redirect(next_url)

    columns = request.POST.getlist('columns')
    visible = set(request.POST.getlist('visible'))
    hidden = [key for key in columns if key not in visible]
    pinned = [key for key in request.POST.getlist('pinned') if key in columns]
    save_prefs(request.session, table_key, hidden, pinned)
    return redirect(next_url)
