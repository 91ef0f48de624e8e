from django.urls import path
from . import views

app_name = 'appointments'

urlpatterns = [
	# slots
	path('appointments', views.slot_list, name='slot_list'),
	path('appointments/available', views.available_slots, name='available_slots'),
	path('public/doctors-with-slots', views.doctors_with_slots, name='doctors_with_slots'),
	path('appointments/<int:pk>', views.slot_detail, name='slot_detail'),
	path('appointments/<int:pk>/status', views.slot_status, name='slot_status'),
	path('doctors/dashboard/create-schedule', views.create_schedule, name='create_schedule'),

	# bookings
	path('token-appointments', views.booking_list, name='booking_list'),
	path('token-appointments/my-appointments', views.my_bookings, name='my_bookings'),
	path('patients/upcoming-appointments', views.upcoming_bookings, name='upcoming_bookings'),
	path('patients/appointment-history', views.booking_history, name='booking_history'),
	path('token-appointments/token/<str:token_number>', views.booking_by_token, name='booking_by_token'),
	path('token-appointments/<int:pk>', views.booking_detail, name='booking_detail'),
	path('token-appointments/<int:pk>/status', views.booking_status, name='booking_status'),

	# reference data
	path('doctors', views.doctor_list, name='doctor_list'),
	path('doctors/profile', views.doctor_profile, name='doctor_profile'),
	path('doctors/profile/exists', views.doctor_profile_exists, name='doctor_profile_exists'),
	path('doctors/my-profile', views.doctor_my_profile, name='doctor_my_profile'),
	path('doctors/<int:pk>', views.doctor_detail, name='doctor_detail'),
	path('assistants', views.assistant_list, name='assistant_list'),
	path('assistants/profile', views.assistant_profile, name='assistant_profile'),
	path('assistants/profile/exists', views.assistant_profile_exists, name='assistant_profile_exists'),
	path('assistants/<int:pk>', views.assistant_detail, name='assistant_detail'),
	path('assistants/<int:pk>/toggle-status', views.assistant_toggle_status, name='assistant_toggle_status'),
	path('clinics', views.clinic_list, name='clinic_list'),
	path('clinics/<int:pk>', views.clinic_detail, name='clinic_detail'),
]
