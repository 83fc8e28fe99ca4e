"""
Order Service: HTTP-граница домена заказов.
"""
