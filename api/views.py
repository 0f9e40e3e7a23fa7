# api/views.py
"""
Thin DRF layer: parse input, call a service, serialize the result. Every
failure is rendered by bloodline.exceptions.api_exception_handler.
"""
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from bloodrequests import services as request_services
from bloodrequests.feed import get_feed_page, get_new_items_since, parse_filters, parse_id
from bloodrequests.models import BloodRequest
from donors import services as donor_services

from .serializers import (
    BloodRequestSerializer,
    BloodRequestWriteSerializer,
    DonorApplicationSerializer,
    DonorResponseSerializer,
    EligibilitySerializer,
    FeedItemSerializer,
    FeedPageSerializer,
    StatusChangeSerializer,
    TransitionResultSerializer,
)


def _viewer(request):
    return request.user if request.user.is_authenticated else None


def _filters(request):
    return parse_filters(
        blood_group=request.query_params.get('blood_group'),
        urgency=request.query_params.get('urgency'),
    )


# ============================================
# FEED
# ============================================
@api_view(['GET'])
@permission_classes([AllowAny])
def feed(request):
    """One page of the ranked feed. Signed-out viewers get the neutral ranking."""
    filters = _filters(request)
    cursor = parse_id(request.query_params.get('cursor'), name='cursor')
    page = get_feed_page(_viewer(request), filters=filters, cursor=cursor)
    return Response({'ok': True, **FeedPageSerializer(page).data})


@api_view(['GET'])
@permission_classes([AllowAny])
def feed_new(request):
    filters = _filters(request)
    since = parse_id(request.query_params.get('since'), name='since', required=True)
    items = get_new_items_since(_viewer(request), since, filters=filters)
    return Response({'ok': True, 'items': FeedItemSerializer(items, many=True).data})


# ============================================
# BLOOD REQUESTS
# ============================================
class BloodRequestViewSet(mixins.CreateModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.UpdateModelMixin,
                          viewsets.GenericViewSet):
    """Create, read and edit requests, plus the per-request actions."""
    queryset = BloodRequest.objects.select_related('user', 'division', 'district', 'upazila')
    serializer_class = BloodRequestSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'post', 'patch']
    lookup_value_regex = r'\d+'

    def get_permissions(self):
        if self.action == 'retrieve':
            return [AllowAny()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):
        serializer = BloodRequestWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        blood_request = request_services.create_blood_request(request.user, serializer.validated_data)
        return Response(
            {'ok': True, 'request': BloodRequestSerializer(blood_request).data},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({'ok': True, 'request': BloodRequestSerializer(self.get_object()).data})

    def partial_update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = BloodRequestWriteSerializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        blood_request = request_services.update_blood_request(
            instance.id, request.user, serializer.validated_data,
        )
        return Response({'ok': True, 'request': BloodRequestSerializer(blood_request).data})

    def update(self, request, *args, **kwargs):
        return self.partial_update(request, *args, **kwargs)

    @action(detail=True, methods=['post'])
    def upvote(self, request, pk=None):
        upvote_count, upvoted = request_services.toggle_upvote(parse_id(pk, required=True), request.user)
        return Response({'ok': True, 'upvote_count': upvote_count, 'upvoted': upvoted})

    @action(detail=True, methods=['post'], url_path='status')
    def change_status(self, request, pk=None):
        serializer = StatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        blood_request = request_services.change_request_status(
            parse_id(pk, required=True), request.user, serializer.validated_data['status'],
        )
        return Response({'ok': True, 'request': BloodRequestSerializer(blood_request).data})

    @action(detail=True, methods=['post'])
    def respond(self, request, pk=None):
        response = donor_services.respond_to_request(request.user, parse_id(pk, required=True))
        return Response(
            {'ok': True, 'response': DonorResponseSerializer(response).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['get'])
    def eligibility(self, request, pk=None):
        result = donor_services.check_eligibility(request.user, parse_id(pk, required=True))
        return Response({'ok': True, **EligibilitySerializer(result).data})

    @action(detail=True, methods=['get'])
    def responses(self, request, pk=None):
        responses = donor_services.list_request_responses(parse_id(pk, required=True), request.user)
        return Response({'ok': True, 'responses': DonorResponseSerializer(responses, many=True).data})


# ============================================
# DONOR RESPONSES
# ============================================
class DonorResponseViewSet(viewsets.ViewSet):
    """Requester decisions on a single response."""
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        summary = donor_services.accept_response(parse_id(pk, required=True), request.user)
        return Response({'ok': True, **TransitionResultSerializer(summary).data})

    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        summary = donor_services.decline_response(parse_id(pk, required=True), request.user)
        return Response({'ok': True, **TransitionResultSerializer(summary).data})


# ============================================
# DONOR APPLICATION
# ============================================
@api_view(['GET', 'POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def donor_application(request):
    """Read, submit or edit the signed-in user's donor application."""
    if request.method == 'GET':
        application = donor_services.get_own_application(request.user)
        return Response({'ok': True, 'application': DonorApplicationSerializer(application).data})

    partial = request.method == 'PATCH'
    serializer = DonorApplicationSerializer(data=request.data, partial=partial)
    serializer.is_valid(raise_exception=True)

    if partial:
        application = donor_services.update_donor_application(request.user, serializer.validated_data)
        return Response({'ok': True, 'application': DonorApplicationSerializer(application).data})

    application = donor_services.submit_donor_application(request.user, serializer.validated_data)
    return Response(
        {'ok': True, 'application': DonorApplicationSerializer(application).data},
        status=status.HTTP_201_CREATED,
    )
