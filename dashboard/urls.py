from django.urls import path
from . import views

app_name = 'dashboard'

urlpatterns = [
    path('global-dashboard/stats', views.global_stats, name='global_stats'),
    path('global-dashboard/today-appointments', views.today_appointments, name='today_appointments'),
    path('global-dashboard/appointments-by-date-range', views.appointments_by_date_range, name='appointments_by_date_range'),
    path('global-dashboard/doctor-wise-stats', views.doctor_wise_stats, name='doctor_wise_stats'),
    path('global-dashboard/search-appointments', views.search_appointments, name='search_appointments'),
    path('global-dashboard/latest-patients', views.latest_patients, name='latest_patients'),
    path('global-dashboard/chart', views.appointments_chart, name='appointments_chart'),
    path('reports/summary', views.report_summary, name='report_summary'),
    path('reports/export', views.report_export, name='report_export'),
    path('token-appointments/export', views.booking_export, name='booking_export'),
]
