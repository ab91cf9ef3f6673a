# Routes package init
"""
TimeBank Backend — API Routes Package
======================================

Route Inventory:
    - health.py:       GET  /                      (banner)
                       GET  /health                (dependency status)
    - auth.py:         POST /register, POST /login
    - profile.py:      GET  /user/{id}, POST /update-profile
    - services.py:     /service, /services, /my-services/{user_id}
    - resources.py:    /upload-resource, /resources, /my-resources/{user_id},
                       /update-resource/{id}, /delete-resource/{id}/{user_id}
    - contact.py:      POST /contact
    - descriptions.py: POST /generate-description
    - uploads.py:      GET  /uploads/{filename}

Routes stay thin: parse the request, call a service, shape the response.
Ownership and validation rules live in the services layer.
"""
