# api/urls.py
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

router = DefaultRouter()
router.register(r'blood-requests', views.BloodRequestViewSet, basename='blood-request')
router.register(r'responses', views.DonorResponseViewSet, basename='response')

app_name = 'api'

urlpatterns = [
    path('', include(router.urls)),

    path('token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    path('feed/', views.feed, name='feed'),
    path('feed/new/', views.feed_new, name='feed-new'),

    path('donor-application/', views.donor_application, name='donor-application'),
]

# Available endpoints:
# POST  /api/token/                              - JWT pair (email or username)
# POST  /api/token/refresh/                      - Refresh access token
#
# GET   /api/feed/?blood_group=&urgency=&cursor=  - One ranked feed page
# GET   /api/feed/new/?since=                    - Rows newer than a seen id
#
# POST  /api/blood-requests/                     - Create a request
# GET   /api/blood-requests/{id}/                - Request detail
# PATCH /api/blood-requests/{id}/                - Edit (owner)
# POST  /api/blood-requests/{id}/upvote/         - Toggle upvote
# POST  /api/blood-requests/{id}/status/         - Owner status change
# POST  /api/blood-requests/{id}/respond/        - Volunteer to donate
# GET   /api/blood-requests/{id}/eligibility/    - Can I respond?
# GET   /api/blood-requests/{id}/responses/      - Responses (owner)
#
# POST  /api/responses/{id}/accept/              - Accept a donor (owner)
# POST  /api/responses/{id}/decline/             - Decline a donor (owner)
#
# GET   /api/donor-application/                  - My donor application
# POST  /api/donor-application/                  - Apply (or reapply after rejection)
# PATCH /api/donor-application/                  - Edit my application
