from django.urls import path

from habits import views

urlpatterns = [
    path("habits", views.habit_list, name="habit-list"),
    path("habits/<str:habit_id>", views.habit_detail, name="habit-detail"),
    path("habits/<str:habit_id>/calendar", views.habit_calendar, name="habit-calendar"),
    path("records", views.record_list, name="record-list"),
    path("chat", views.chat, name="chat"),
]
