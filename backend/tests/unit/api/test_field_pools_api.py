"""
Unit Tests for Field Pool API Endpoints
"""
import pytest
from datetime import timedelta
from httpx import AsyncClient
from faker import Faker

from research_portal.core.types import utcnow
from research_portal.models.field_pool import FieldPoolStatus, LecturerSelection

fake = Faker()


def iso_in(days: float) -> str:
    return (utcnow() + timedelta(days=days)).isoformat()


class TestFieldPoolCrud:

    @pytest.mark.asyncio
    async def test_create_field_pool(self, client: AsyncClient):
        response = await client.post('/api/v1/field-pools', json={
            'name': fake.catch_phrase()[:200],
            'description': fake.sentence(),
            'registration_deadline': iso_in(30),
        })

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        assert body['data']['status'] == 'OPEN'
        assert body['data']['version'] == 1

    @pytest.mark.asyncio
    async def test_create_requires_name(self, client: AsyncClient):
        response = await client.post('/api/v1/field-pools', json={'description': 'no name'})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_returns_detail_with_counts(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=-5)

        response = await client.get(f'/api/v1/field-pools/{field_pool.id}')

        assert response.status_code == 200
        data = response.json()['data']
        # Stored status is returned even though the deadline has passed
        assert data['status'] == 'OPEN'
        assert data['counts'] == {'lecturer_selections': 0, 'student_selections': 0, 'projects': 0, 'domains': 0}
        assert data['domains'] == []

    @pytest.mark.asyncio
    async def test_get_missing_returns_404(self, client: AsyncClient):
        response = await client.get('/api/v1/field-pools/does-not-exist')

        assert response.status_code == 404
        body = response.json()
        assert body['success'] is False
        assert body['error']['code'] == 'FIELD_POOL_NOT_FOUND'

    @pytest.mark.asyncio
    async def test_find_with_pagination(self, client: AsyncClient, make_field_pool):
        for _ in range(3):
            await make_field_pool()

        response = await client.get('/api/v1/field-pools', params={'page': 1, 'limit': 2})

        assert response.status_code == 200
        body = response.json()
        assert len(body['data']) == 2
        assert body['pagination']['total'] == 3
        assert body['pagination']['has_next'] is True

    @pytest.mark.asyncio
    async def test_find_limit_over_max_rejected(self, client: AsyncClient):
        response = await client.get('/api/v1/field-pools', params={'limit': 500})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_all(self, client: AsyncClient, make_field_pool):
        await make_field_pool(name='Beta pool')
        await make_field_pool(name='Alpha pool')

        response = await client.get('/api/v1/field-pools/all')

        assert response.status_code == 200
        assert [fp['name'] for fp in response.json()['data']] == ['Alpha pool', 'Beta pool']

    @pytest.mark.asyncio
    async def test_delete(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool()

        response = await client.delete(f'/api/v1/field-pools/{field_pool.id}')
        assert response.status_code == 200

        response = await client.get(f'/api/v1/field-pools/{field_pool.id}')
        assert response.status_code == 404


class TestFieldPoolUpdate:

    @pytest.mark.asyncio
    async def test_future_deadline_reopens(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-2)

        response = await client.put(
            f'/api/v1/field-pools/{field_pool.id}',
            json={'registration_deadline': iso_in(10)},
        )

        assert response.status_code == 200
        body = response.json()
        assert body['data']['status'] == 'OPEN'
        assert 'automatically changed to OPEN' in body['message']

    @pytest.mark.asyncio
    async def test_past_deadline_closes(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool(FieldPoolStatus.OPEN, days=10)

        response = await client.put(
            f'/api/v1/field-pools/{field_pool.id}',
            json={'registration_deadline': iso_in(-1)},
        )

        assert response.json()['data']['status'] == 'CLOSED'

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool(description='Keep me')

        response = await client.put(f'/api/v1/field-pools/{field_pool.id}', json={'name': 'New name'})

        data = response.json()['data']
        assert data['name'] == 'New name'
        assert data['description'] == 'Keep me'

    @pytest.mark.asyncio
    async def test_invalid_status_is_bad_request(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool()

        response = await client.put(f'/api/v1/field-pools/{field_pool.id}', json={'status': 'ARCHIVED'})

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'INVALID_ARGUMENT'

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool()
        response = await client.put(f'/api/v1/field-pools/{field_pool.id}', json={'version': 7})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_missing(self, client: AsyncClient):
        response = await client.put('/api/v1/field-pools/missing', json={'name': 'Whatever'})
        assert response.status_code == 404


class TestExtendDeadline:

    @pytest.mark.asyncio
    async def test_extend_reopens_closed_pool(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-1)

        response = await client.put(
            f'/api/v1/field-pools/{field_pool.id}/extend-deadline',
            json={'new_deadline': iso_in(7), 'reason': 'Exam week'},
        )

        assert response.status_code == 200
        body = response.json()
        assert body['data']['status'] == 'OPEN'
        assert 'reopened' in body['message']

    @pytest.mark.asyncio
    async def test_extend_with_past_deadline(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool(FieldPoolStatus.CLOSED, days=-1)

        response = await client.put(
            f'/api/v1/field-pools/{field_pool.id}/extend-deadline',
            json={'new_deadline': iso_in(-1)},
        )

        assert response.status_code == 400
        assert response.json()['error']['code'] == 'INVALID_DEADLINE'

    @pytest.mark.asyncio
    async def test_extend_requires_deadline(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool()
        response = await client.put(f'/api/v1/field-pools/{field_pool.id}/extend-deadline', json={})
        assert response.status_code == 422


class TestDomainsApi:

    @pytest.mark.asyncio
    async def test_domain_flow(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool()

        created = await client.post('/api/v1/domains', json={'name': 'Robotics'})
        assert created.status_code == 201
        domain_id = created.json()['data']['id']

        added = await client.post(f'/api/v1/field-pools/{field_pool.id}/domains', json={'domain_id': domain_id})
        assert added.status_code == 201

        duplicate = await client.post(f'/api/v1/field-pools/{field_pool.id}/domains', json={'domain_id': domain_id})
        assert duplicate.status_code == 409

        listed = await client.get(f'/api/v1/field-pools/{field_pool.id}/domains')
        assert [d['name'] for d in listed.json()['data']] == ['Robotics']

        removed = await client.delete(f'/api/v1/field-pools/{field_pool.id}/domains/{domain_id}')
        assert removed.status_code == 200

        listed = await client.get(f'/api/v1/field-pools/{field_pool.id}/domains')
        assert listed.json()['data'] == []


class TestLecturersApi:

    @pytest.mark.asyncio
    async def test_list_lecturers(self, client: AsyncClient, db_session, make_field_pool):
        field_pool = await make_field_pool()
        db_session.add(LecturerSelection(field_pool_id=field_pool.id, lecturer_id='lec-1', capacity=4))
        await db_session.commit()

        response = await client.get(f'/api/v1/field-pools/{field_pool.id}/lecturers')

        assert response.status_code == 200
        body = response.json()
        assert body['message'] == 'Field pool lecturers retrieved successfully'
        lecturer = body['data'][0]
        assert lecturer['lecturer_id'] == 'lec-1'
        assert lecturer['capacity'] == 4
        assert lecturer['current_capacity'] == 0
        assert lecturer['status'] == 'PENDING'

    @pytest.mark.asyncio
    async def test_empty_pool(self, client: AsyncClient, make_field_pool):
        field_pool = await make_field_pool()

        response = await client.get(f'/api/v1/field-pools/{field_pool.id}/lecturers')

        assert response.status_code == 200
        assert response.json()['data'] == []
        assert response.json()['message'] == 'No lecturers registered for this field pool'

    @pytest.mark.asyncio
    async def test_missing_pool(self, client: AsyncClient):
        response = await client.get('/api/v1/field-pools/missing/lecturers')
        assert response.status_code == 404
        assert response.json()['error']['code'] == 'FIELD_POOL_NOT_FOUND'

class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get('/health')
        assert response.status_code == 200
        assert response.json()['status'] == 'healthy'

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        response = await client.get('/api/v1/health/live')
        assert response.status_code == 200
        assert response.json()['status'] == 'alive'

    @pytest.mark.asyncio
    async def test_response_headers(self, client: AsyncClient):
        response = await client.get('/api/v1/field-pools')
        assert 'X-Request-ID' in response.headers
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
