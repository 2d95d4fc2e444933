import os

import pytest

from caportal.extensions import db
from caportal.models import Document, DocumentFolder
from caportal.utils.crypto import encrypt_document, decrypt_document, HEADER_LENGTH
from caportal.exceptions import PortalException
from conftest import upload

PDF = b'%PDF-1.4 quarterly statement'


def post_document(c, **fields):
    data = {'title': 'ITR AY 2025-26', 'category': 'TAX_RETURNS', 'file': upload(PDF, 'itr.pdf')}
    data.update(fields)
    return c.post('/api/documents', data=data, content_type='multipart/form-data')


def stored_bytes(app, document_id):
    with app.app_context():
        doc = db.session.get(Document, document_id)
        with open(os.path.join(app.config['UPLOAD_FOLDER'], doc.file_path), 'rb') as fh:
            return fh.read()


class TestDocuments:

    def test_requires_login(self, client):
        assert client.get('/api/documents').status_code == 401

    def test_client_upload_and_list(self, portal_client, client_id):
        resp = post_document(portal_client, description='Filed copy')
        assert resp.status_code == 201
        doc = resp.get_json()
        assert doc['userId'] == client_id
        assert doc['uploadedBy'] == 'CLIENT'
        assert doc['fileType'] == 'application/pdf'
        assert doc['fileSize'] == len(PDF)
        assert 'filePath' not in doc

        listed = portal_client.get('/api/documents').get_json()
        assert [d['id'] for d in listed] == [doc['id']]
        assert portal_client.get('/api/documents?category=GST_RETURNS').get_json() == []

    def test_upload_validation(self, portal_client):
        assert post_document(portal_client, title='').get_json()['error'] == 'Title is required'
        assert post_document(portal_client, category='PHOTOS').status_code == 400

        resp = post_document(portal_client, file=upload(b'MZ', 'setup.exe', 'application/x-msdownload'))
        assert resp.status_code == 400
        assert 'not allowed' in resp.get_json()['error']

    def test_upload_size_limit(self, app, portal_client):
        app.config['DOCUMENT_MAX_SIZE'] = 10
        resp = post_document(portal_client)
        assert resp.status_code == 400
        assert 'too large' in resp.get_json()['error']

    def test_clients_cannot_see_each_other(self, portal_client, other_portal_client):
        doc_id = post_document(portal_client).get_json()['id']
        assert other_portal_client.get(f'/api/documents/{doc_id}').status_code == 403
        assert other_portal_client.get(f'/api/documents/{doc_id}/download').status_code == 403
        assert other_portal_client.delete(f'/api/documents/{doc_id}').status_code == 403
        assert other_portal_client.get('/api/documents').get_json() == []

    def test_staff_upload_for_client(self, staff_client, portal_client, client_id):
        resp = post_document(staff_client, userId=str(client_id))
        assert resp.status_code == 201
        doc = resp.get_json()
        assert doc['userId'] == client_id
        assert doc['uploadedBy'] == 'ADMIN'

        # Clients may not delete what the firm uploaded
        assert portal_client.delete(f"/api/documents/{doc['id']}").status_code == 403
        assert staff_client.get(f'/api/documents?userId={client_id}').get_json()[0]['id'] == doc['id']

    def test_staff_target_must_exist(self, staff_client):
        resp = post_document(staff_client, userId='9999')
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'Target user not found'

    def test_client_user_id_is_ignored(self, portal_client, client_id, other_client_id):
        doc = post_document(portal_client, userId=str(other_client_id)).get_json()
        assert doc['userId'] == client_id

    def test_update_is_admin_only(self, admin_client, staff_client, portal_client):
        doc_id = post_document(portal_client).get_json()['id']
        assert portal_client.put(f'/api/documents/{doc_id}', json={'title': 'x'}).status_code == 403
        assert staff_client.put(f'/api/documents/{doc_id}', json={'title': 'x'}).status_code == 403

        resp = admin_client.put(f'/api/documents/{doc_id}', json={
            'title': 'Audit report FY25', 'category': 'AUDIT_REPORTS', 'description': ''
        })
        assert resp.status_code == 200
        assert resp.get_json()['category'] == 'AUDIT_REPORTS'
        assert resp.get_json()['description'] is None

    def test_download_headers(self, portal_client):
        doc_id = post_document(portal_client).get_json()['id']

        resp = portal_client.get(f'/api/documents/{doc_id}/download')
        assert resp.status_code == 200
        assert resp.data == PDF
        assert resp.headers['Content-Disposition'] == 'attachment; filename="itr.pdf"'
        assert resp.headers['Cache-Control'] == 'private, no-cache, no-store, must-revalidate'
        assert resp.headers['X-Content-Type-Options'] == 'nosniff'

        inline = portal_client.get(f'/api/documents/{doc_id}/download?view=1')
        assert inline.headers['Content-Disposition'].startswith('inline;')

    def test_delete_removes_file(self, app, portal_client):
        doc_id = post_document(portal_client).get_json()['id']
        with app.app_context():
            path = os.path.join(app.config['UPLOAD_FOLDER'], db.session.get(Document, doc_id).file_path)
        assert os.path.exists(path)

        assert portal_client.delete(f'/api/documents/{doc_id}').status_code == 200
        assert not os.path.exists(path)
        assert portal_client.get(f'/api/documents/{doc_id}').status_code == 404


class TestEncryption:

    def test_round_trip(self, ctx):
        blob = encrypt_document(PDF, 'master-key')
        assert len(blob) == HEADER_LENGTH + len(PDF)
        assert PDF not in blob
        assert decrypt_document(blob, 'master-key') == PDF

    def test_tampered_blob_rejected(self, ctx):
        blob = bytearray(encrypt_document(PDF, 'master-key'))
        blob[-1] ^= 0x01
        with pytest.raises(PortalException):
            decrypt_document(bytes(blob), 'master-key')

    def test_wrong_key_rejected(self, ctx):
        with pytest.raises(PortalException):
            decrypt_document(encrypt_document(PDF, 'master-key'), 'other-key')

    def test_stored_encrypted_when_key_configured(self, app, portal_client):
        app.config['DOCUMENT_ENCRYPTION_KEY'] = 'locker-key'
        doc = post_document(portal_client).get_json()
        assert doc['isEncrypted'] is True
        assert PDF not in stored_bytes(app, doc['id'])

        resp = portal_client.get(f"/api/documents/{doc['id']}/download")
        assert resp.data == PDF
        assert resp.headers['Content-Length'] == str(len(PDF))


class TestFolders:

    def create(self, c, name, parent_id=None, **extra):
        return c.post('/api/folders', json=dict(name=name, parentId=parent_id, **extra))

    def test_tree_and_breadcrumbs(self, portal_client):
        root = self.create(portal_client, '  FY 2024-25 ').get_json()
        assert root['name'] == 'FY 2024-25'
        gst = self.create(portal_client, 'GST', root['id']).get_json()
        q1 = self.create(portal_client, 'Q1', gst['id']).get_json()

        top = portal_client.get('/api/folders').get_json()
        assert [f['name'] for f in top] == ['FY 2024-25']
        assert top[0]['_count'] == {'documents': 0, 'children': 1}

        detail = portal_client.get(f"/api/folders/{q1['id']}").get_json()
        assert [b['name'] for b in detail['breadcrumbs']] == ['FY 2024-25', 'GST', 'Q1']

        children = portal_client.get(f"/api/folders?parentId={root['id']}").get_json()
        assert [f['id'] for f in children] == [gst['id']]

    def test_duplicate_name_in_same_parent(self, portal_client):
        assert self.create(portal_client, 'Invoices').status_code == 201
        resp = self.create(portal_client, 'Invoices')
        assert resp.status_code == 409

    def test_name_required(self, portal_client):
        assert self.create(portal_client, '   ').status_code == 400

    def test_parent_must_belong_to_owner(self, portal_client, other_portal_client):
        foreign = self.create(other_portal_client, 'Private').get_json()
        assert self.create(portal_client, 'Sneaky', foreign['id']).status_code == 400
        assert portal_client.get(f"/api/folders/{foreign['id']}").status_code == 403

    def test_move_into_own_subtree_rejected(self, portal_client):
        a = self.create(portal_client, 'A').get_json()
        b = self.create(portal_client, 'B', a['id']).get_json()

        resp = portal_client.put(f"/api/folders/{a['id']}", json={'parentId': b['id']})
        assert resp.status_code == 400
        assert portal_client.put(f"/api/folders/{a['id']}", json={'parentId': a['id']}).status_code == 400

        moved = portal_client.put(f"/api/folders/{b['id']}", json={'parentId': None, 'name': 'B2'})
        assert moved.status_code == 200
        assert moved.get_json()['parentId'] is None
        assert moved.get_json()['name'] == 'B2'

    def test_document_in_folder(self, portal_client):
        folder = self.create(portal_client, 'Returns').get_json()
        doc = post_document(portal_client, folderId=str(folder['id'])).get_json()
        assert doc['folderId'] == folder['id']

        detail = portal_client.get(f"/api/folders/{folder['id']}").get_json()
        assert [d['id'] for d in detail['documents']] == [doc['id']]
        assert portal_client.get('/api/documents?folderId=root').get_json() == []
        assert len(portal_client.get(f"/api/documents?folderId={folder['id']}").get_json()) == 1

    def test_delete_subtree_detaches_documents(self, app, portal_client):
        a = self.create(portal_client, 'A').get_json()
        b = self.create(portal_client, 'B', a['id']).get_json()
        c = self.create(portal_client, 'C', b['id']).get_json()
        doc = post_document(portal_client, folderId=str(c['id'])).get_json()

        resp = portal_client.delete(f"/api/folders/{a['id']}")
        assert resp.get_json()['deleted'] == 3

        with app.app_context():
            assert DocumentFolder.query.count() == 0
            assert db.session.get(Document, doc['id']).folder_id is None
        assert portal_client.get(f"/api/documents/{doc['id']}").status_code == 200
