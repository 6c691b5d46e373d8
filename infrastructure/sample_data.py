USERS = [
    {
        'id': 'user_001',
        'name': 'John Doe',
        'email': 'john.doe@example.com',
        'created_at': '2024-01-01T00:00:00Z'
    },
    {
        'id': 'user_002',
        'name': 'Jane Smith',
        'email': 'jane.smith@tempmail.com',  # Disposable domain, screened as fraud
        'created_at': '2024-01-15T00:00:00Z'
    },
    {
        'id': 'user_003',
        'name': 'Bob Johnson',
        'email': 'bob.johnson@example.com',  # Blocklisted below
        'created_at': '2024-02-01T00:00:00Z'
    },
    {
        'id': 'user_004',
        'name': 'No Email',
        'created_at': '2024-02-10T00:00:00Z'
    }
]

BLOCKED_ENTITIES = [
    {
        'id': 'block_001',
        'user_id': 'user_003',
        'reason': 'Chargeback history',
        'created_at': '2024-03-01T00:00:00Z'
    }
]
