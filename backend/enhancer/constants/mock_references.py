"""Canned search results used when no search provider is available."""

from enhancer.schemas.reference import ReferenceCandidate

MOCK_ARTICLE_1 = """
<h2>Introduction to AI Chatbots</h2>
<p>AI chatbots have changed the way businesses interact with customers. They provide 24/7 support, handle multiple queries at once, and can significantly reduce operational costs.</p>
<h2>Key Features of Modern Chatbots</h2>
<ul>
  <li>Natural Language Processing (NLP) for understanding user intent</li>
  <li>Machine Learning for continuous improvement</li>
  <li>Integration with CRM and other business tools</li>
  <li>Multi-channel support (web, mobile, social media)</li>
</ul>
<h2>Best Practices</h2>
<p>When implementing a chatbot, consider these best practices:</p>
<ol>
  <li>Define clear use cases and goals</li>
  <li>Design conversational flows that feel natural</li>
  <li>Always provide an option to speak with a human</li>
  <li>Continuously train and improve your bot</li>
  <li>Monitor performance metrics and user satisfaction</li>
</ol>
<h2>Conclusion</h2>
<p>A well-implemented chatbot can transform customer service and drive business growth. Focus on user experience and continuous improvement for the best results.</p>
""".strip()

MOCK_ARTICLE_2 = """
<h2>What is Conversational AI?</h2>
<p>Conversational AI refers to technologies that let computers simulate human-like conversations. This includes chatbots, virtual assistants, and voice-enabled devices.</p>
<h2>Benefits for Businesses</h2>
<p>Organizations implementing conversational AI see significant benefits:</p>
<ul>
  <li>Reduced customer service costs by up to 30%</li>
  <li>Improved response times and availability</li>
  <li>Higher customer satisfaction scores</li>
  <li>Valuable insights from conversation analytics</li>
</ul>
<h2>Implementation Strategies</h2>
<p>Successful implementation requires careful planning:</p>
<ol>
  <li>Start with a pilot program</li>
  <li>Focus on high-volume, repetitive queries first</li>
  <li>Integrate with existing systems</li>
  <li>Train staff to work alongside AI</li>
</ol>
<h2>Future Trends</h2>
<p>The future of conversational AI includes more advanced NLP, emotional intelligence, and seamless omnichannel experiences.</p>
""".strip()


def mock_candidates() -> list[ReferenceCandidate]:
    """Fresh copies of the two canned results; identical on every call."""
    return [
        ReferenceCandidate(
            title="Best Practices for AI Chatbots - Tech Insights",
            link="mock://article-1",
            snippet="Learn about the best practices for implementing AI chatbots...",
            mock_content=MOCK_ARTICLE_1,
        ),
        ReferenceCandidate(
            title="The Complete Guide to Conversational AI - Industry Report",
            link="mock://article-2",
            snippet="A comprehensive guide covering all aspects of conversational AI...",
            mock_content=MOCK_ARTICLE_2,
        ),
    ]
